from datetime import datetime, timezone

import pytest

from fomo_backend.errors import ExpiredCard, InvalidCardNumber
from fomo_backend.models.cards import Card, CardBrand
from fomo_backend.tokenization import rules

NOW = datetime(2026, 6, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize("number,brand", [
    ("4242424242424242", CardBrand.VISA),
    ("5555 5555 5555 4444", CardBrand.MASTERCARD),
    ("378282246310005", CardBrand.AMEX),
    ("6011-1111-1111-1117", CardBrand.DISCOVER),
    ("9999999999999995", CardBrand.UNKNOWN),
])
def test_detect_brand(number, brand):
    assert rules.detect_brand(number) is brand


def test_validate_number_strips_separators():
    assert rules.validate_number("4242 4242-4242 4242") == "4242424242424242"


@pytest.mark.parametrize("number,reason", [
    ("4242 4242 abcd 4242", "format"),
    ("", "format"),
    ("42424242424", "length"),
    ("42424242424242424242", "length"),
    ("4242424242424241", "checksum"),
])
def test_validate_number_failures(number, reason):
    with pytest.raises(InvalidCardNumber) as exc:
        rules.validate_number(number)
    assert exc.value.reason == reason


def test_expiry_valid_through_end_of_month():
    rules.validate_expiry(6, 2026, now=NOW)
    rules.validate_expiry(7, 26, now=NOW)


def test_expired_card():
    with pytest.raises(ExpiredCard):
        rules.validate_expiry(5, 2026, now=NOW)


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_expiry_month(month):
    with pytest.raises(InvalidCardNumber) as exc:
        rules.validate_expiry(month, 2030, now=NOW)
    assert exc.value.reason == "expiry_month"


def test_cvc_length_depends_on_brand():
    rules.validate_cvc("1234", CardBrand.AMEX)
    rules.validate_cvc("123", CardBrand.VISA)
    with pytest.raises(InvalidCardNumber):
        rules.validate_cvc("123", CardBrand.AMEX)
    with pytest.raises(InvalidCardNumber):
        rules.validate_cvc("12a", CardBrand.VISA)


def test_validate_card_returns_brand():
    card = Card("378282246310005", 1, 2030, "1234")
    assert rules.validate_card(card, now=NOW) is CardBrand.AMEX
