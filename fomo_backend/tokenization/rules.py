"""
Validation pure des données de carte (pas de réseau, pas d'état).
"""
import re
from datetime import datetime, timezone
from typing import Optional

from fomo_backend.errors import ExpiredCard, InvalidCardNumber
from fomo_backend.models.cards import Card, CardBrand

# préfixe -> marque (premier chiffre)
BRAND_PREFIXES = {
    "4": CardBrand.VISA,
    "5": CardBrand.MASTERCARD,
    "3": CardBrand.AMEX,
    "6": CardBrand.DISCOVER,
}
MIN_LENGTH = 12
MAX_LENGTH = 19

_SEPARATORS = re.compile(r"[\s-]")


def normalize_number(number: str) -> str:
    return _SEPARATORS.sub("", number or "")


def detect_brand(number: str) -> CardBrand:
    digits = normalize_number(number)
    return BRAND_PREFIXES.get(digits[:1], CardBrand.UNKNOWN)


def luhn_valid(digits: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def validate_number(number: str) -> str:
    """
    Retourne le numéro normalisé (chiffres uniquement) ou lève InvalidCardNumber.
    - Espaces et tirets tolérés
    - Longueur 12..19, somme de Luhn correcte
    """
    digits = normalize_number(number)
    if not digits.isdigit():
        raise InvalidCardNumber("Numéro de carte invalide", reason="format")
    if not MIN_LENGTH <= len(digits) <= MAX_LENGTH:
        raise InvalidCardNumber("Numéro de carte invalide", reason="length")
    if not luhn_valid(digits):
        raise InvalidCardNumber("Numéro de carte invalide", reason="checksum")
    return digits


def validate_cvc(cvc: str, brand: CardBrand) -> None:
    expected = 4 if brand is CardBrand.AMEX else 3
    value = (cvc or "").strip()
    if not value.isdigit() or len(value) != expected:
        raise InvalidCardNumber("CVC invalide", reason="cvc")


def normalize_year(year: int) -> int:
    # "30" -> 2030
    return 2000 + year if 0 <= year < 100 else year


def validate_expiry(month: int, year: int, now: Optional[datetime] = None) -> None:
    """
    La carte est valable jusqu'au dernier jour de son mois d'expiration inclus.
    """
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidCardNumber("Mois d'expiration invalide", reason="expiry_month")
    if isinstance(year, bool) or not isinstance(year, int) or year < 0:
        raise InvalidCardNumber("Année d'expiration invalide", reason="expiry_year")
    now = now or datetime.now(timezone.utc)
    if (normalize_year(year), month) < (now.year, now.month):
        raise ExpiredCard(f"Carte expirée ({month:02d}/{year})")


def validate_card(card: Card, now: Optional[datetime] = None) -> CardBrand:
    """Valide la carte complète et retourne sa marque."""
    digits = validate_number(card.number)
    brand = detect_brand(digits)
    validate_expiry(card.expiry_month, card.expiry_year, now=now)
    validate_cvc(card.cvc, brand)
    return brand
