"""
Montants exacts (Decimal + code devise ISO 4217).

- Jamais de float: un float est refusé pour éviter toute dérive binaire.
- La valeur est quantifiée sur l'unité mineure de la devise (2 décimales pour USD/EUR, 0 pour JPY...).
- Immuable: les opérations renvoient un nouvel Amount.
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from fomo_backend.errors import CurrencyMismatch, InvalidAmount

# code -> nombre de décimales de l'unité mineure
CURRENCY_EXPONENTS = {
    "AED": 2, "AUD": 2, "BGN": 2, "BHD": 3, "BRL": 2, "CAD": 2, "CHF": 2,
    "CLP": 0, "CNY": 2, "CZK": 2, "DKK": 2, "EUR": 2, "GBP": 2, "HKD": 2,
    "HUF": 2, "IDR": 2, "ILS": 2, "INR": 2, "ISK": 0, "JOD": 3, "JPY": 0,
    "KRW": 0, "KWD": 3, "MAD": 2, "MXN": 2, "MYR": 2, "NOK": 2, "NZD": 2,
    "OMR": 3, "PHP": 2, "PLN": 2, "RON": 2, "SAR": 2, "SEK": 2, "SGD": 2,
    "THB": 2, "TND": 3, "TRY": 2, "TWD": 2, "UAH": 2, "USD": 2, "VND": 0,
    "XOF": 0, "ZAR": 2,
}

AmountValue = Union[str, int, Decimal]


def normalize_currency(currency: str) -> str:
    code = str(currency or "").strip().upper()
    if code not in CURRENCY_EXPONENTS:
        raise InvalidAmount(f"Devise inconnue: {currency!r}")
    return code


class Amount:
    __slots__ = ("_value", "_currency")

    def __init__(self, value: AmountValue, currency: str):
        code = normalize_currency(currency)
        if isinstance(value, float):
            raise InvalidAmount("Montant flottant refusé, utiliser une chaîne décimale")
        if isinstance(value, bool):
            raise InvalidAmount(f"Montant invalide: {value!r}")
        try:
            dec = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
        except InvalidOperation:
            raise InvalidAmount(f"Montant invalide: {value!r}")
        if not dec.is_finite():
            raise InvalidAmount(f"Montant invalide: {value!r}")
        if dec < 0:
            raise InvalidAmount(f"Montant négatif: {value}")
        exponent = CURRENCY_EXPONENTS[code]
        quantum = Decimal(1).scaleb(-exponent)
        try:
            quantized = dec.quantize(quantum)
        except InvalidOperation:
            raise InvalidAmount(f"Montant hors limites: {value}")
        if quantized != dec:
            raise InvalidAmount(f"Trop de décimales pour {code}: {value}")
        object.__setattr__(self, "_value", quantized)
        object.__setattr__(self, "_currency", code)

    def __setattr__(self, name, value):
        raise AttributeError("Amount est immuable")

    @classmethod
    def parse(cls, value: AmountValue, currency: str) -> "Amount":
        return cls(value, currency)

    @classmethod
    def from_minor_units(cls, units: int, currency: str) -> "Amount":
        if isinstance(units, bool) or not isinstance(units, int):
            raise InvalidAmount(f"Unités mineures entières attendues: {units!r}")
        code = normalize_currency(currency)
        return cls(Decimal(units).scaleb(-CURRENCY_EXPONENTS[code]), code)

    @classmethod
    def zero(cls, currency: str) -> "Amount":
        return cls.from_minor_units(0, currency)

    @property
    def value(self) -> Decimal:
        return self._value

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def minor_units(self) -> int:
        return int(self._value.scaleb(CURRENCY_EXPONENTS[self._currency]))

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        if other.currency != self.currency:
            raise CurrencyMismatch(f"{self.currency} != {other.currency}")
        return Amount(self._value + other.value, self._currency)

    def __mul__(self, quantity: int) -> "Amount":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            return NotImplemented
        if quantity < 0:
            raise InvalidAmount(f"Quantité négative: {quantity}")
        return Amount(self._value * quantity, self._currency)

    __rmul__ = __mul__

    def __eq__(self, other) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self._currency == other.currency and self._value == other.value

    def __hash__(self) -> int:
        return hash((self._value, self._currency))

    def __repr__(self) -> str:
        return f"Amount('{self._value}', '{self._currency}')"

    def __str__(self) -> str:
        return f"{self._value} {self._currency}"

    def to_dict(self):
        return {"amountMinorUnits": self.minor_units, "currency": self._currency}
