"""
Catalogue de prix en lecture seule (forfaits + boissons par établissement).

Partagé par tous les appelants; refresh() remplace l'instantané entier d'un coup:
un lecteur voit l'ancien ou le nouveau catalogue, jamais un mélange.
"""
import logging
import threading
from typing import Dict, Iterable, List, NamedTuple, Optional

from fomo_backend.errors import TierNotFound
from fomo_backend.models.catalog import Drink, PricingTier

logger = logging.getLogger(__name__)


class _Snapshot(NamedTuple):
    tiers: Dict[str, PricingTier]
    drinks: Dict[str, Drink]


def _build(tiers: Iterable[PricingTier], drinks: Iterable[Drink]) -> _Snapshot:
    return _Snapshot({t.id: t for t in tiers}, {d.id: d for d in drinks})


class PricingCatalog:
    def __init__(self, tiers: Iterable[PricingTier] = (), drinks: Iterable[Drink] = ()):
        self._lock = threading.Lock()
        self._snapshot = _build(tiers, drinks)

    def refresh(self, tiers: Iterable[PricingTier], drinks: Iterable[Drink] = ()) -> None:
        snapshot = _build(tiers, drinks)
        with self._lock:
            self._snapshot = snapshot
        logger.info("pricing.refresh tiers=%s drinks=%s", len(snapshot.tiers), len(snapshot.drinks))

    def tiers_for_venue(self, venue_id: str) -> List[PricingTier]:
        """Forfaits d'un établissement; les forfaits sans venue_id valent pour tous."""
        snapshot = self._snapshot
        return [t for t in snapshot.tiers.values() if t.venue_id in (None, venue_id)]

    def find_tier(self, tier_id: str) -> Optional[PricingTier]:
        return self._snapshot.tiers.get(tier_id)

    def tier(self, tier_id: str) -> PricingTier:
        found = self.find_tier(tier_id)
        if found is None:
            raise TierNotFound(f"Forfait introuvable: {tier_id}")
        return found

    def drinks_for_venue(self, venue_id: str) -> List[Drink]:
        snapshot = self._snapshot
        return [d for d in snapshot.drinks.values() if d.venue_id in (None, venue_id)]

    def drink(self, drink_id: str) -> Optional[Drink]:
        return self._snapshot.drinks.get(drink_id)

    def __len__(self) -> int:
        return len(self._snapshot.tiers)
