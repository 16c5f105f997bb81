"""
Entrées de catalogue: forfaits (paywall) et boissons.
Immuables, créées au chargement du catalogue.
"""
from typing import NamedTuple, Optional, Tuple

from fomo_backend.models.money import Amount


class PricingTier(NamedTuple):
    id: str
    name: str
    price: Amount
    description: str
    venue_id: Optional[str] = None
    features: Tuple[str, ...] = ()
    duration_days: Optional[int] = None

    kind = "tier"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "priceMinorUnits": self.price.minor_units,
            "currency": self.price.currency,
            "description": self.description,
        }


class Drink(NamedTuple):
    id: str
    name: str
    price: Amount
    venue_id: Optional[str] = None
    category: str = ""
    description: str = ""
    is_available: bool = True

    kind = "drink"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "priceMinorUnits": self.price.minor_units,
            "currency": self.price.currency,
            "category": self.category,
            "available": self.is_available,
        }
