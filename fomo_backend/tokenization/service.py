"""
Cas d'usage 'tokenization': carte brute -> PaymentToken opaque.

Étapes:
1) Validation synchrone (rules.validate_card) avant toute attente: une requête vouée
   à l'échec ne paie jamais la latence de la passerelle
2) Aller-retour passerelle (create_token), annulable
3) Enregistrement du jeton dans le registre (sans attente: rien n'est émis si annulé avant)
La carte est effacée (Card.wipe) dans tous les cas.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fomo_backend.errors import CheckoutError, InvalidCardNumber, NetworkError
from fomo_backend.gateways.base import GatewayCardError, GatewayUnavailable, PaymentGateway
from fomo_backend.models.cards import Card, CardBrand, PaymentToken
from fomo_backend.models.outcome import Outcome
from fomo_backend.tokenization import rules
from fomo_backend.tokenization.registry import TokenRegistry
from fomo_backend.utils.attempts import Attempt, AttemptState, run_attempt

logger = logging.getLogger(__name__)


class Tokenizer:
    def __init__(self, gateway: PaymentGateway, registry: Optional[TokenRegistry] = None):
        self.gateway = gateway
        self.registry = registry if registry is not None else TokenRegistry()

    def start(self, card: Card) -> Attempt:
        """
        Valide la carte puis lance la tokenisation; retourne la poignée annulable.
        - Lève InvalidCardNumber / ExpiredCard immédiatement (carte effacée).
        - Boucle asyncio requise.
        """
        try:
            brand = rules.validate_card(card)
        except CheckoutError:
            card.wipe()
            raise
        card.number = rules.normalize_number(card.number)
        attempt = Attempt(lambda a: self._run(a, card, brand), name="tokenize")
        # annulée avant son premier pas, la tâche ne passe jamais par le finally de _run
        attempt.add_done_callback(lambda _: card.wipe())
        return attempt

    async def tokenize(self, card: Card) -> Outcome[PaymentToken]:
        try:
            attempt = self.start(card)
        except CheckoutError as e:
            logger.info("tokenize.rejected code=%s reason=%s", e.code, e.reason)
            return Outcome.failure(e)
        return await run_attempt(attempt)

    async def _run(self, attempt: Attempt, card: Card, brand: CardBrand) -> Outcome[PaymentToken]:
        try:
            last4 = card.number[-4:]
            expiry_month = card.expiry_month
            expiry_year = rules.normalize_year(card.expiry_year)
            holder = card.holder_name or None

            attempt.mark(AttemptState.IN_FLIGHT)
            try:
                token_id = await self.gateway.create_token(card, brand)
            except GatewayCardError as e:
                attempt.mark(AttemptState.FAILED)
                return Outcome.failure(InvalidCardNumber("Carte refusée par la passerelle", reason=e.code))
            except GatewayUnavailable as e:
                logger.warning("tokenize.network_error gateway=%s error=%s", self.gateway.name, e)
                attempt.mark(AttemptState.FAILED)
                return Outcome.failure(NetworkError("Passerelle de tokenisation indisponible"))

            token = PaymentToken(
                id=token_id,
                brand=brand,
                last4=last4,
                expiry_month=expiry_month,
                expiry_year=expiry_year,
                created_at=datetime.now(timezone.utc),
                holder_name=holder,
            )
            self.registry.purge_expired()
            self.registry.register(token)
            attempt.mark(AttemptState.SUCCEEDED)
            logger.info("tokenize.ok token=%s brand=%s last4=%s", token.id, brand.value, last4)
            return Outcome.success(token)
        finally:
            card.wipe()

    def validate_payment_method(self, token_id: str, reference: Optional[str] = None) -> Outcome[PaymentToken]:
        """Vérifie qu'un jeton est encore utilisable (connu, non expiré, non lié ailleurs)."""
        try:
            return Outcome.success(self.registry.check(token_id, reference))
        except CheckoutError as e:
            return Outcome.failure(e)
