import os

# Environnement de test fixé avant tout import de fomo_backend.config
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ["PAYMENT_GATEWAY"] = "simulated"
os.environ["GATEWAY_LATENCY_SECONDS"] = "0"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""

import pytest
from typing import Generator
from datetime import datetime
from fastapi.testclient import TestClient

from fomo_backend.app_setup.factory import create_app
from fomo_backend.gateways.simulated import SimulatedGateway
from fomo_backend.models.cards import Card
from fomo_backend.pricing.catalog import PricingCatalog
from fomo_backend.pricing.repository import default_drinks, default_tiers
from fomo_backend.tokenization.registry import TokenRegistry

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

NEXT_YEAR = datetime.now().year + 1

@pytest.fixture()
def make_card():
    def _make(number="4242 4242 4242 4242", month=12, year=NEXT_YEAR, cvc="123", holder="Test User") -> Card:
        return Card(number=number, expiry_month=month, expiry_year=year, cvc=cvc, holder_name=holder)
    return _make

@pytest.fixture()
def gateway() -> SimulatedGateway:
    return SimulatedGateway(latency=0)

@pytest.fixture()
def catalog() -> PricingCatalog:
    return PricingCatalog(default_tiers("USD"), default_drinks("USD"))

@pytest.fixture()
def registry() -> TokenRegistry:
    return TokenRegistry(ttl_seconds=900)

@pytest.fixture()
def app(gateway, catalog):
    return create_app(gateway=gateway, catalog=catalog)

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Aucun accès Supabase pendant les tests
@pytest.fixture(autouse=True)
def _no_supabase(monkeypatch):
    monkeypatch.setattr("fomo_backend.infra.supabase_client.is_configured", lambda: False)
