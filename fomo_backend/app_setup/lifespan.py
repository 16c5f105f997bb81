"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Construit les services du checkout dans app.state (passerelle, catalogue,
  registre des jetons, tokenizer, ledger, processeur).
- Variables d’environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l’init échoue
"""
import os
import logging
import redis.asyncio as redis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from fomo_backend import config
from fomo_backend.gateways import build_gateway
from fomo_backend.payments import PaymentLedger, PaymentProcessor, insert_payment
from fomo_backend.pricing import PricingCatalog, load_catalog_entries
from fomo_backend.tokenization import TokenRegistry, Tokenizer


def init_checkout_services(app: FastAPI) -> None:
    """
    Place les services dans app.state. Un service déjà présent (injecté par un test)
    est conservé; le catalogue vide est chargé depuis Supabase ou le catalogue intégré.
    """
    logger = logging.getLogger("uvicorn.error")
    state = app.state
    if getattr(state, "gateway", None) is None:
        state.gateway = build_gateway()
    if getattr(state, "catalog", None) is None:
        state.catalog = PricingCatalog()
    if len(state.catalog) == 0:
        tiers, drinks = load_catalog_entries()
        state.catalog.refresh(tiers, drinks)
    if getattr(state, "tokens", None) is None:
        state.tokens = TokenRegistry(ttl_seconds=config.TOKEN_TTL_SECONDS)
    if getattr(state, "tokenizer", None) is None:
        state.tokenizer = Tokenizer(state.gateway, state.tokens)
    if getattr(state, "processor", None) is None:
        state.processor = PaymentProcessor(
            state.gateway,
            state.catalog,
            state.tokens,
            PaymentLedger(mirror=insert_payment),
        )
    logger.info("Checkout ready gateway=%s tiers=%s", state.gateway.name, len(state.catalog))


async def init_rate_limiter(app: FastAPI) -> None:
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d’échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    - Les logs indiquent l’état effectif (enabled/disabled) pour observabilité.
    """
    logger = logging.getLogger("uvicorn.error")
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis.aioredis import FakeRedis  # tests only
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_rate_limiter(app)
    init_checkout_services(app)
    yield
