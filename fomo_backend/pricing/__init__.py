"""
Module 'pricing' (feature-first): catalogue partagé + accès données.
"""
from .catalog import PricingCatalog
from .repository import default_drinks, default_tiers, load_catalog_entries

__all__ = [
    "PricingCatalog",
    "default_drinks",
    "default_tiers",
    "load_catalog_entries",
]
