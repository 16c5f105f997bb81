"""
Passerelle simulée: remplace l'aller-retour réseau par asyncio.sleep.

Cartes de test (mêmes numéros que les cartes de test Stripe):
- 4000000000000002: refus ferme (card_declined)
- 4000000000009995: refus souple (insufficient_funds), jeton réutilisable
- 4000000000000119: erreur transitoire (processing_error) -> GatewayUnavailable
- 4000000000003220: authentification requise -> paiement "pending"
Tout autre numéro valide est accepté.
"""
import asyncio
import logging
from typing import Dict
from uuid import uuid4

from fomo_backend.gateways.base import (
    Authorization,
    Capture,
    ChargeRequest,
    GatewayUnavailable,
)
from fomo_backend.models.cards import Card, CardBrand

logger = logging.getLogger(__name__)

SCENARIOS = {
    "4000000000000002": "card_declined",
    "4000000000009995": "insufficient_funds",
    "4000000000000119": "processing_error",
    "4000000000003220": "authentication_required",
}
SOFT_DECLINES = {"insufficient_funds"}

# identifiants de jeton sans chiffres: ni le numéro ni le CVC ne peuvent y figurer
_NO_DIGITS = str.maketrans("0123456789", "ghijklmnop")


class SimulatedGateway:
    name = "simulated"

    def __init__(self, latency: float = 1.0):
        self.latency = latency
        # jeton -> scénario; le numéro de carte n'est jamais conservé
        self._scenarios: Dict[str, str] = {}
        self._authorizations: Dict[str, ChargeRequest] = {}
        self.captured: Dict[str, str] = {}

    async def _round_trip(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def create_token(self, card: Card, brand: CardBrand) -> str:
        scenario = SCENARIOS.get(card.number, "ok")
        await self._round_trip()
        token_id = f"tok_{uuid4().hex.translate(_NO_DIGITS)}"
        self._scenarios[token_id] = scenario
        return token_id

    async def authorize(self, request: ChargeRequest) -> Authorization:
        await self._round_trip()
        scenario = self._scenarios.get(request.token_id, "ok")
        if scenario == "processing_error":
            raise GatewayUnavailable("processing_error")
        auth_id = f"auth_{uuid4().hex}"
        if scenario in ("card_declined", "insufficient_funds"):
            return Authorization(auth_id, "declined", reason=scenario, hard_decline=scenario not in SOFT_DECLINES)
        if scenario == "authentication_required":
            return Authorization(auth_id, "pending", reason=scenario)
        # aucune attente entre l'enregistrement et le retour: une annulation pendant
        # _round_trip() ne laisse donc aucune autorisation active
        self._authorizations[auth_id] = request
        return Authorization(auth_id, "authorized")

    async def capture(self, authorization: Authorization, request: ChargeRequest) -> Capture:
        if self._authorizations.pop(authorization.id, None) is None:
            return Capture(authorization.id, "failed", reason="authorization_not_found")
        transaction_id = f"txn_{uuid4().hex}"
        self.captured[transaction_id] = request.reference
        logger.info("simulated.capture txn=%s reference=%s amount=%s", transaction_id, request.reference, request.amount)
        return Capture(transaction_id, "succeeded")

    async def void(self, authorization: Authorization) -> None:
        self._authorizations.pop(authorization.id, None)

    @property
    def open_authorizations(self) -> int:
        return len(self._authorizations)
