"""
Registre central des routers (tokenisation, paiement, catalogue, health).
"""
from fastapi import FastAPI
from fomo_backend.tokenization.views import router as tokenization_router
from fomo_backend.payments.views import router as payments_router
from fomo_backend.pricing.views import router as pricing_router
from fomo_backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(tokenization_router)
    app.include_router(payments_router)
    app.include_router(pricing_router)
    # Health & monitoring
    app.include_router(health_router)
