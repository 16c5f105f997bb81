# Façade des types métier du checkout (une définition canonique par entité).
from .money import Amount, CURRENCY_EXPONENTS
from .cards import Card, CardBrand, PaymentToken
from .catalog import Drink, PricingTier
from .payments import LineItem, Order, PaymentResult, PaymentStatus, Purchasable
from .outcome import Outcome

__all__ = [
    "Amount",
    "CURRENCY_EXPONENTS",
    "Card",
    "CardBrand",
    "PaymentToken",
    "Drink",
    "PricingTier",
    "LineItem",
    "Order",
    "PaymentResult",
    "PaymentStatus",
    "Purchasable",
    "Outcome",
]
