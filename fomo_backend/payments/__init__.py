"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le ledger des résultats, le miroir Supabase et le processeur de paiement.
"""
from .ledger import PaymentLedger
from .processor import PaymentProcessor
from .repository import insert_payment

__all__ = [
    "PaymentLedger",
    "PaymentProcessor",
    "insert_payment",
]
