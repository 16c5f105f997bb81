"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.

- Tokenisation: stripe.PaymentMethod.create (type="card")
- Autorisation: PaymentIntent confirmé en capture manuelle (status requires_capture)
- Capture: PaymentIntent.capture -> débit effectif
- Void: PaymentIntent.cancel (autorisation arrivée après une annulation)
Le SDK est bloquant: chaque appel passe par l'executor par défaut de la boucle.
"""
import asyncio
import functools
import logging
from typing import Any, Callable

import stripe

from fomo_backend import config
from fomo_backend.gateways.base import (
    Authorization,
    Capture,
    ChargeRequest,
    GatewayCardError,
    GatewayUnavailable,
)
from fomo_backend.models.cards import Card, CardBrand

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)
# codes de refus après lesquels le même moyen de paiement peut être retenté
SOFT_DECLINE_CODES = {"insufficient_funds", "try_again_later", "processing_error"}


def require_stripe(api_key: str = "") -> Any:
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via la clé fournie ou STRIPE_SECRET_KEY.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    key = api_key or config.STRIPE_SECRET_KEY
    if key:
        stripe.api_key = key
    return stripe


class StripeGateway:
    name = "stripe"

    def __init__(self, api_key: str = ""):
        self._stripe = require_stripe(api_key)

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
        except TRANSIENT_ERRORS as e:
            raise GatewayUnavailable(str(e)) from e

    async def create_token(self, card: Card, brand: CardBrand) -> str:
        try:
            method = await self._call(
                self._stripe.PaymentMethod.create,
                type="card",
                card={
                    "number": card.number,
                    "exp_month": card.expiry_month,
                    "exp_year": card.expiry_year,
                    "cvc": card.cvc,
                },
                billing_details={"name": card.holder_name or None},
            )
        except stripe.CardError as e:
            raise GatewayCardError(e.code or "card_error", e.user_message or "") from e
        return method["id"]

    def _create_intent(self, request: ChargeRequest):
        return self._stripe.PaymentIntent.create(
            amount=request.amount.minor_units,
            currency=request.amount.currency.lower(),
            payment_method=request.token_id,
            payment_method_types=["card"],
            capture_method="manual",
            confirm=True,
            metadata={"order_id": request.reference},
            idempotency_key=request.attempt_id,
        )

    def _void_late_authorization(self, future: "asyncio.Future") -> None:
        if future.cancelled() or future.exception() is not None:
            return
        intent = future.result()
        if intent.get("status") == "requires_capture":
            logger.warning("stripe.void late authorization intent=%s", intent.get("id"))
            try:
                self._stripe.PaymentIntent.cancel(intent["id"])
            except Exception:
                logger.exception("stripe.void failed intent=%s", intent.get("id"))

    async def authorize(self, request: ChargeRequest) -> Authorization:
        loop = asyncio.get_running_loop()
        inner = loop.run_in_executor(None, functools.partial(self._create_intent, request))
        try:
            intent = await asyncio.shield(inner)
        except asyncio.CancelledError:
            # le thread continue: si l'autorisation aboutit quand même, on l'annule
            inner.add_done_callback(self._void_late_authorization)
            raise
        except stripe.CardError as e:
            code = e.code or "card_declined"
            decline = (getattr(e, "error", None) and e.error.get("decline_code")) or code
            intent_id = ((getattr(e, "error", None) or {}).get("payment_intent") or {}).get("id") or request.attempt_id
            return Authorization(intent_id, "declined", reason=decline, hard_decline=decline not in SOFT_DECLINE_CODES)
        except TRANSIENT_ERRORS as e:
            raise GatewayUnavailable(str(e)) from e

        status = intent.get("status")
        if status == "requires_capture":
            return Authorization(intent["id"], "authorized")
        if status in ("processing", "requires_action"):
            return Authorization(intent["id"], "pending", reason=status)
        return Authorization(intent["id"], "declined", reason=status or "unknown", hard_decline=True)

    async def capture(self, authorization: Authorization, request: ChargeRequest) -> Capture:
        intent = await self._call(self._stripe.PaymentIntent.capture, authorization.id)
        if intent.get("status") == "succeeded":
            charge_id = intent.get("latest_charge") or intent["id"]
            return Capture(charge_id, "succeeded")
        return Capture(intent["id"], "failed", reason=intent.get("status"))

    async def void(self, authorization: Authorization) -> None:
        await self._call(self._stripe.PaymentIntent.cancel, authorization.id)
