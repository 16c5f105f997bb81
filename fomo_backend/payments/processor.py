"""
Cas d'usage 'payments': orchestre catalogue, registre des jetons, passerelle et ledger.

Machine à états d'une tentative (utils.attempts.AttemptState):
  initiated -> in_flight -> [committing] -> succeeded | failed | pending
  initiated/in_flight -> cancelled (Attempt.cancel)

Garanties:
- Préconditions synchrones (TierNotFound, AmountMismatch) avant toute attente:
  aucun PaymentResult n'est créé pour une requête invalide.
- Clé de règlement: la commande enregistrée (un règlement par commande) ou le couple
  (forfait, jeton) (un achat du forfait par acheteur).
- Un verrou par clé de règlement, retiré dès qu'il n'a plus d'utilisateur.
- Idempotence: une clé réglée (success/pending) rejoue son résultat pour le même
  jeton; une commande réglée renvoie AlreadySettled pour un autre jeton. Aucun nouveau débit.
- Annulation avant la capture: aucun résultat, jeton libéré.
- Aucune relance automatique: la politique de retry appartient à l'appelant.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple, Union
from uuid import uuid4

from fomo_backend.errors import (
    AlreadySettled,
    AmountMismatch,
    CartConflict,
    CheckoutError,
    NetworkError,
    PaymentDeclined,
    TierNotFound,
)
from fomo_backend.gateways.base import (
    Authorization,
    ChargeRequest,
    GatewayUnavailable,
    PaymentGateway,
)
from fomo_backend.models.cards import PaymentToken
from fomo_backend.models.money import Amount
from fomo_backend.models.outcome import Outcome
from fomo_backend.models.payments import Order, PaymentResult, PaymentStatus
from fomo_backend.payments.ledger import PaymentLedger
from fomo_backend.pricing.catalog import PricingCatalog
from fomo_backend.tokenization.registry import TokenRegistry
from fomo_backend.utils.attempts import Attempt, AttemptState, run_attempt

logger = logging.getLogger(__name__)


class PaymentProcessor:
    def __init__(
        self,
        gateway: PaymentGateway,
        catalog: PricingCatalog,
        tokens: TokenRegistry,
        ledger: Optional[PaymentLedger] = None,
    ):
        self.gateway = gateway
        self.catalog = catalog
        self.tokens = tokens
        self.ledger = ledger if ledger is not None else PaymentLedger()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # --- Références payables -------------------------------------------------
    def register_order(self, order: Order) -> Order:
        """Rend une commande gelée (Cart.submit) payable via son id."""
        if self.catalog.find_tier(order.id) is not None:
            raise CartConflict(f"Identifiant de commande réservé: {order.id}")
        return self.ledger.register_order(order)

    def expected_amount(self, reference: str) -> Amount:
        """Prix catalogue du forfait, sinon total de la commande enregistrée."""
        tier = self.catalog.find_tier(reference)
        if tier is not None:
            return tier.price
        order = self.ledger.order(reference)
        if order is not None:
            return order.total
        raise TierNotFound(f"Forfait ou commande introuvable: {reference}")

    def result_for(self, reference: str) -> Optional[PaymentResult]:
        return self.ledger.latest(reference)

    # --- Paiement --------------------------------------------------------------
    def start(self, token: Union[str, PaymentToken], amount: Amount, reference: str) -> Attempt:
        """
        Vérifie les préconditions puis lance la tentative; retourne la poignée annulable.
        - token: PaymentToken ou son id.
        - Lève TierNotFound / AmountMismatch immédiatement (aucune attente, aucun résultat).
        """
        token_id = token.id if isinstance(token, PaymentToken) else token
        expected = self.expected_amount(reference)
        if amount != expected:
            raise AmountMismatch(f"Montant {amount} différent du prix attendu {expected}")
        return Attempt(lambda a: self._run(a, token_id, amount, reference), name=f"charge:{reference}")

    async def charge(self, token: Union[str, PaymentToken], amount: Amount, reference: str) -> Outcome[PaymentResult]:
        try:
            attempt = self.start(token, amount, reference)
        except CheckoutError as e:
            logger.info("charge.rejected reference=%s code=%s", reference, e.code)
            return Outcome.failure(e)
        return await run_attempt(attempt)

    def _settlement_key(self, token_id: str, reference: str) -> Tuple[str, Optional[str]]:
        """(clé de verrou, jeton filtrant le ledger): par acheteur pour un forfait, global pour une commande."""
        if self.catalog.find_tier(reference) is not None:
            return f"{reference}:{token_id}", token_id
        return reference, None

    @asynccontextmanager
    async def _locked(self, key: str):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    def _record(
        self,
        request: ChargeRequest,
        status: PaymentStatus,
        transaction_id: str,
        reason: Optional[str] = None,
    ) -> PaymentResult:
        result = PaymentResult(
            id=f"pay_{uuid4().hex}",
            transaction_id=transaction_id,
            token_id=request.token_id,
            reference=request.reference,
            amount=request.amount,
            status=status,
            timestamp=datetime.now(timezone.utc),
            reason=reason,
        )
        logger.info(
            "charge.%s reference=%s txn=%s amount=%s reason=%s",
            status.value, request.reference, transaction_id, request.amount, reason,
        )
        return self.ledger.record(result)

    async def _run(self, attempt: Attempt, token_id: str, amount: Amount, reference: str) -> Outcome[PaymentResult]:
        lock_key, purchaser = self._settlement_key(token_id, reference)
        async with self._locked(lock_key):
            prior = self.ledger.settled(reference, token_id=purchaser)
            if prior is not None:
                if prior.token_id == token_id:
                    attempt.mark(AttemptState.PENDING if prior.status is PaymentStatus.PENDING else AttemptState.SUCCEEDED)
                    logger.info("charge.replay reference=%s txn=%s", reference, prior.transaction_id)
                    return Outcome.success(prior, replayed=True)
                attempt.mark(AttemptState.FAILED)
                return Outcome.failure(AlreadySettled(prior))

            try:
                self.tokens.bind(token_id, reference)
            except CheckoutError as e:
                attempt.mark(AttemptState.FAILED)
                return Outcome.failure(e)

            request = ChargeRequest(
                attempt_id=f"att_{uuid4().hex}",
                token_id=token_id,
                amount=amount,
                reference=reference,
            )
            attempt.mark(AttemptState.IN_FLIGHT)
            try:
                authorization = await self.gateway.authorize(request)
            except asyncio.CancelledError:
                self.tokens.release(token_id, reference)
                attempt.mark(AttemptState.CANCELLED)
                logger.info("charge.cancelled reference=%s attempt=%s", reference, request.attempt_id)
                raise
            except GatewayUnavailable as e:
                self.tokens.release(token_id, reference)
                attempt.mark(AttemptState.FAILED)
                logger.warning("charge.network_error reference=%s error=%s", reference, e)
                return Outcome.failure(NetworkError("Passerelle de paiement indisponible"))

            return await self._settle(attempt, request, authorization)

    async def _settle(self, attempt: Attempt, request: ChargeRequest, authorization: Authorization) -> Outcome[PaymentResult]:
        if authorization.status == "declined":
            reason = authorization.reason or "declined"
            result = self._record(request, PaymentStatus.FAILURE, authorization.id, reason)
            if authorization.hard_decline:
                self.tokens.burn(request.token_id)
            else:
                self.tokens.release(request.token_id, request.reference)
            attempt.mark(AttemptState.FAILED)
            return Outcome.failure(PaymentDeclined(reason, hard=authorization.hard_decline, result=result))

        if authorization.status == "pending":
            result = self._record(request, PaymentStatus.PENDING, authorization.id, authorization.reason)
            attempt.mark(AttemptState.PENDING)
            return Outcome.success(result)

        # point de validation: Attempt.cancel() refuse désormais l'annulation
        attempt.mark(AttemptState.COMMITTING)
        try:
            capture = await self.gateway.capture(authorization, request)
        except GatewayUnavailable as e:
            # issue inconnue: on bloque la référence plutôt que de risquer un double débit
            logger.warning("charge.capture_unconfirmed reference=%s error=%s", request.reference, e)
            result = self._record(request, PaymentStatus.PENDING, authorization.id, "capture_unconfirmed")
            attempt.mark(AttemptState.PENDING)
            return Outcome.success(result)

        if capture.status == "succeeded":
            result = self._record(request, PaymentStatus.SUCCESS, capture.transaction_id)
            attempt.mark(AttemptState.SUCCEEDED)
            return Outcome.success(result)

        reason = capture.reason or "capture_failed"
        result = self._record(request, PaymentStatus.FAILURE, capture.transaction_id, reason)
        self.tokens.burn(request.token_id)
        attempt.mark(AttemptState.FAILED)
        return Outcome.failure(PaymentDeclined(reason, result=result))
