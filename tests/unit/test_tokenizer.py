import asyncio
import uuid

import pytest

from fomo_backend.errors import Cancelled, ExpiredCard, InvalidCardNumber, InvalidToken, NetworkError
from fomo_backend.gateways.base import GatewayUnavailable
from fomo_backend.models.cards import CardBrand
from fomo_backend.tokenization.service import Tokenizer
from fomo_backend.utils.attempts import AttemptState


def test_tokenize_returns_token_without_card_data(gateway, registry, make_card):
    tokenizer = Tokenizer(gateway, registry)
    card = make_card()
    outcome = asyncio.run(tokenizer.tokenize(card))

    assert outcome.ok
    token = outcome.value
    assert token.id.startswith("tok_")
    assert token.brand is CardBrand.VISA
    assert token.last4 == "4242"
    assert "4242424242424242" not in repr(token)
    assert registry.get(token.id) == token
    assert card.wiped


@pytest.mark.parametrize("number,cvc", [
    ("4242424242424242", "123"),
    ("5555555555554444", "000"),
    ("4000056655665556", "424"),
    ("378282246310005", "1234"),
])
def test_token_never_carries_card_number_or_cvc(gateway, registry, make_card, monkeypatch, number, cvc):
    # uuid dont l'hexadécimal se termine par le CVC
    monkeypatch.setattr("fomo_backend.gateways.simulated.uuid4", lambda: uuid.UUID(int=int(cvc, 16)))
    outcome = asyncio.run(Tokenizer(gateway, registry).tokenize(make_card(number=number, cvc=cvc)))

    token = outcome.unwrap()
    assert cvc not in token.id
    assert not any(ch.isdigit() for ch in token.id)
    for value in token.to_dict().values():
        assert number not in str(value)


def test_invalid_number_fails_before_gateway(gateway, registry, make_card, monkeypatch):
    calls = []

    async def _create_token(card, brand):
        calls.append(card)
        return "tok_x"

    monkeypatch.setattr(gateway, "create_token", _create_token)
    card = make_card(number="4242 4242 4242 4241")
    outcome = asyncio.run(Tokenizer(gateway, registry).tokenize(card))

    assert isinstance(outcome.error, InvalidCardNumber)
    assert outcome.error.reason == "checksum"
    assert calls == []
    assert card.wiped
    assert len(registry) == 0


def test_expired_card(gateway, registry, make_card):
    outcome = asyncio.run(Tokenizer(gateway, registry).tokenize(make_card(month=1, year=2020)))
    assert isinstance(outcome.error, ExpiredCard)


def test_start_raises_validation_errors_synchronously(gateway, registry, make_card):
    async def _run():
        with pytest.raises(InvalidCardNumber):
            Tokenizer(gateway, registry).start(make_card(cvc="12"))

    asyncio.run(_run())


def test_network_error_issues_no_token(gateway, registry, make_card, monkeypatch):
    async def _down(card, brand):
        raise GatewayUnavailable("timeout")

    monkeypatch.setattr(gateway, "create_token", _down)
    card = make_card()
    outcome = asyncio.run(Tokenizer(gateway, registry).tokenize(card))

    assert isinstance(outcome.error, NetworkError)
    assert outcome.error.retryable
    assert len(registry) == 0
    assert card.wiped


def test_cancel_before_completion_issues_no_token(registry, make_card):
    from fomo_backend.gateways.simulated import SimulatedGateway

    card = make_card()

    async def _run():
        tokenizer = Tokenizer(SimulatedGateway(latency=5), registry)
        attempt = tokenizer.start(card)
        await asyncio.sleep(0.01)
        assert attempt.state is AttemptState.IN_FLIGHT
        assert attempt.cancel() is True
        return await attempt.outcome()

    outcome = asyncio.run(_run())
    assert isinstance(outcome.error, Cancelled)
    assert len(registry) == 0
    assert card.wiped


def test_validate_payment_method(gateway, registry, make_card):
    tokenizer = Tokenizer(gateway, registry)
    token = asyncio.run(tokenizer.tokenize(make_card())).unwrap()

    assert tokenizer.validate_payment_method(token.id).ok
    registry.bind(token.id, "tier_vip")
    assert tokenizer.validate_payment_method(token.id, "tier_vip").ok
    outcome = tokenizer.validate_payment_method(token.id, "day-pass")
    assert isinstance(outcome.error, InvalidToken)
    assert outcome.error.reason == "token_already_used"
    assert tokenizer.validate_payment_method("tok_unknown").error.reason == "unknown_token"
