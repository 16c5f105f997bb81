"""
Contrat d'une passerelle de paiement (tokenisation + autorisation/capture).

Le processeur ne parle qu'à cette interface; deux implémentations:
- SimulatedGateway: latence artificielle, cartes de test (développement, tests)
- StripeGateway: SDK Stripe (PaymentMethod + PaymentIntent en capture manuelle)

Garanties attendues d'une implémentation:
- authorize() annulée avant son retour ne laisse aucune autorisation active.
- capture() est le point de validation: une fois appelée, le débit a lieu.
"""
from typing import NamedTuple, Optional, Protocol

from fomo_backend.models.cards import Card, CardBrand
from fomo_backend.models.money import Amount


class GatewayUnavailable(Exception):
    """Erreur transitoire (réseau, timeout, 5xx): aucune autorisation n'a été créée."""


class GatewayCardError(Exception):
    """Carte refusée par la passerelle dès la tokenisation."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class ChargeRequest(NamedTuple):
    attempt_id: str
    token_id: str
    amount: Amount
    reference: str


class Authorization(NamedTuple):
    id: str
    status: str  # "authorized" | "declined" | "pending"
    reason: Optional[str] = None
    hard_decline: bool = False

    @property
    def authorized(self) -> bool:
        return self.status == "authorized"


class Capture(NamedTuple):
    transaction_id: str
    status: str  # "succeeded" | "failed"
    reason: Optional[str] = None


class PaymentGateway(Protocol):
    name: str

    async def create_token(self, card: Card, brand: CardBrand) -> str:
        ...

    async def authorize(self, request: ChargeRequest) -> Authorization:
        ...

    async def capture(self, authorization: Authorization, request: ChargeRequest) -> Capture:
        ...

    async def void(self, authorization: Authorization) -> None:
        ...
