"""
Carte brute (entrée éphémère) et jeton de paiement (sûr à conserver).
"""
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"
    UNKNOWN = "unknown"


class Card:
    """
    Données de carte saisies par l'utilisateur.
    Ne jamais persister ni logger: le Tokenizer appelle wipe() dès qu'un jeton
    est produit ou qu'une erreur survient.
    """

    def __init__(
        self,
        number: str,
        expiry_month: int,
        expiry_year: int,
        cvc: str,
        holder_name: str = "",
    ):
        self.number = number
        self.expiry_month = expiry_month
        self.expiry_year = expiry_year
        self.cvc = cvc
        self.holder_name = holder_name

    def wipe(self) -> None:
        self.number = ""
        self.cvc = ""

    @property
    def wiped(self) -> bool:
        return not self.number and not self.cvc

    def __repr__(self) -> str:
        # jamais le numéro complet ni le CVC
        last4 = (self.number or "")[-4:]
        return f"Card(****{last4}, {self.expiry_month:02d}/{self.expiry_year})"


class PaymentToken(NamedTuple):
    id: str
    brand: CardBrand
    last4: str
    expiry_month: int
    expiry_year: int
    created_at: datetime
    holder_name: Optional[str] = None

    def to_dict(self):
        return {
            "token": self.id,
            "brand": self.brand.value,
            "last4": self.last4,
            "expiryMonth": self.expiry_month,
            "expiryYear": self.expiry_year,
        }
