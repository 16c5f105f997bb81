"""
Module 'tokenization' (feature-first): point d'entrée public.
Réunit règles de validation carte, registre des jetons et service de tokenisation.
"""
from .rules import detect_brand, luhn_valid, validate_card
from .registry import TokenRegistry
from .service import Tokenizer

__all__ = [
    "detect_brand",
    "luhn_valid",
    "validate_card",
    "TokenRegistry",
    "Tokenizer",
]
