from datetime import datetime, timezone

import pytest

from fomo_backend.errors import InvalidToken
from fomo_backend.models.cards import CardBrand, PaymentToken
from fomo_backend.tokenization.registry import TokenRegistry


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _token(token_id="tok_1"):
    return PaymentToken(token_id, CardBrand.VISA, "4242", 12, 2030, datetime.now(timezone.utc))


def test_bind_is_idempotent_for_same_reference():
    registry = TokenRegistry()
    registry.register(_token())
    registry.bind("tok_1", "tier_vip")
    registry.bind("tok_1", "tier_vip")
    with pytest.raises(InvalidToken) as exc:
        registry.bind("tok_1", "day-pass")
    assert exc.value.reason == "token_already_used"


def test_release_frees_token():
    registry = TokenRegistry()
    registry.register(_token())
    registry.bind("tok_1", "tier_vip")
    registry.release("tok_1", "tier_vip")
    registry.bind("tok_1", "day-pass")


def test_burned_token_rejected():
    registry = TokenRegistry()
    registry.register(_token())
    registry.burn("tok_1")
    with pytest.raises(InvalidToken) as exc:
        registry.check("tok_1")
    assert exc.value.reason == "token_declined"


def test_expiry_and_purge():
    clock = _Clock()
    registry = TokenRegistry(ttl_seconds=60, clock=clock)
    registry.register(_token("tok_1"))
    registry.register(_token("tok_2"))
    registry.bind("tok_2", "tier_vip")
    clock.now = 61
    with pytest.raises(InvalidToken) as exc:
        registry.check("tok_1")
    assert exc.value.reason == "token_expired"
    assert registry.purge_expired() == 1
    assert registry.get("tok_1") is None
    assert registry.get("tok_2") is not None
