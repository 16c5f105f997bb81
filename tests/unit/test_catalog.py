import threading

import pytest

from fomo_backend.errors import TierNotFound
from fomo_backend.models.catalog import PricingTier
from fomo_backend.models.money import Amount
from fomo_backend.pricing.catalog import PricingCatalog


def _tier(tier_id, price, venue_id=None):
    return PricingTier(tier_id, tier_id.title(), Amount(price, "USD"), "", venue_id=venue_id)


def test_tiers_for_venue_includes_shared_tiers():
    catalog = PricingCatalog([
        _tier("day-pass", "9.99"),
        _tier("club_vip", "59.99", venue_id="club"),
        _tier("bar_vip", "39.99", venue_id="bar"),
    ])
    ids = {t.id for t in catalog.tiers_for_venue("club")}
    assert ids == {"day-pass", "club_vip"}


def test_tier_lookup(catalog):
    assert catalog.tier("tier_vip").price == Amount("49.99", "USD")
    assert catalog.find_tier("nope") is None
    with pytest.raises(TierNotFound):
        catalog.tier("nope")


def test_drinks(catalog):
    assert catalog.drink("drink_beer").price == Amount("6.50", "USD")
    assert len(catalog.drinks_for_venue("any")) == 3


def test_refresh_swaps_whole_snapshot():
    old = [_tier("a", "1.00"), _tier("b", "2.00")]
    new = [_tier("c", "3.00"), _tier("d", "4.00")]
    catalog = PricingCatalog(old)
    seen = []
    stop = threading.Event()

    def _reader():
        while not stop.is_set():
            seen.append(frozenset(t.id for t in catalog.tiers_for_venue("v")))

    reader = threading.Thread(target=_reader)
    reader.start()
    for _ in range(200):
        catalog.refresh(new)
        catalog.refresh(old)
    stop.set()
    reader.join()

    assert set(seen) <= {frozenset({"a", "b"}), frozenset({"c", "d"})}
