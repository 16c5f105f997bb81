"""
Module 'gateways': passerelles de paiement interchangeables.
"""
from typing import Optional

from fomo_backend import config
from .base import (
    Authorization,
    Capture,
    ChargeRequest,
    GatewayCardError,
    GatewayUnavailable,
    PaymentGateway,
)
from .simulated import SimulatedGateway


def build_gateway(name: Optional[str] = None, *, latency: Optional[float] = None) -> PaymentGateway:
    """
    Construit la passerelle configurée (PAYMENT_GATEWAY).
    - "stripe": import paresseux pour ne pas exiger de clé en développement.
    - sinon: passerelle simulée avec GATEWAY_LATENCY_SECONDS.
    """
    name = (name or config.PAYMENT_GATEWAY).lower()
    if name == "stripe":
        from .stripe_gateway import StripeGateway
        return StripeGateway()
    return SimulatedGateway(latency=config.GATEWAY_LATENCY_SECONDS if latency is None else latency)


__all__ = [
    "Authorization",
    "Capture",
    "ChargeRequest",
    "GatewayCardError",
    "GatewayUnavailable",
    "PaymentGateway",
    "SimulatedGateway",
    "build_gateway",
]
