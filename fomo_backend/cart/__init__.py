"""
Module 'cart': agrégation des lignes d'achat et total exact.
"""
from .cart import Cart

__all__ = ["Cart"]
