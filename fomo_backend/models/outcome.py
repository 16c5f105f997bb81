"""
Valeur de retour explicite de tokenize/charge: soit une valeur, soit une erreur
de la taxonomie (jamais d'exception à travers cette frontière).
"""
from typing import Generic, Optional, TypeVar

from fomo_backend.errors import CheckoutError

T = TypeVar("T")


class Outcome(Generic[T]):
    __slots__ = ("value", "error", "replayed")

    def __init__(self, value: Optional[T] = None, error: Optional[CheckoutError] = None, replayed: bool = False):
        if (value is None) == (error is None):
            raise ValueError("Outcome: exactement une valeur ou une erreur")
        self.value = value
        self.error = error
        self.replayed = replayed

    @classmethod
    def success(cls, value: T, *, replayed: bool = False) -> "Outcome[T]":
        return cls(value=value, replayed=replayed)

    @classmethod
    def failure(cls, error: CheckoutError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def __repr__(self) -> str:
        if self.ok:
            return f"Outcome.success({self.value!r}, replayed={self.replayed})"
        return f"Outcome.failure({self.error.code}: {self.error.message})"
