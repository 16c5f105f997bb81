from datetime import datetime, timezone

import pytest

from fomo_backend.errors import CartConflict
from fomo_backend.models.money import Amount
from fomo_backend.models.payments import Order, PaymentResult, PaymentStatus
from fomo_backend.payments import repository as payments_repo
from fomo_backend.payments.ledger import PaymentLedger


def _result(result_id, status, reference="tier_vip", token_id="tok_1"):
    return PaymentResult(
        id=result_id,
        transaction_id=f"txn_{result_id}",
        token_id=token_id,
        reference=reference,
        amount=Amount("49.99", "USD"),
        status=status,
        timestamp=datetime.now(timezone.utc),
    )


def test_settled_ignores_failures():
    ledger = PaymentLedger()
    ledger.record(_result("r1", PaymentStatus.FAILURE))
    assert ledger.latest("tier_vip").id == "r1"
    assert ledger.settled("tier_vip") is None
    ledger.record(_result("r2", PaymentStatus.SUCCESS))
    assert ledger.settled("tier_vip").id == "r2"
    assert [r.id for r in ledger.history("tier_vip")] == ["r1", "r2"]


def test_settled_per_purchaser():
    ledger = PaymentLedger()
    ledger.record(_result("r1", PaymentStatus.SUCCESS, token_id="tok_alice"))
    ledger.record(_result("r2", PaymentStatus.FAILURE, token_id="tok_bob"))
    assert ledger.settled("tier_vip", token_id="tok_alice").id == "r1"
    assert ledger.settled("tier_vip", token_id="tok_bob") is None
    assert ledger.settled("tier_vip", token_id="tok_carol") is None


def test_results_are_recorded_once():
    ledger = PaymentLedger()
    ledger.record(_result("r1", PaymentStatus.SUCCESS))
    with pytest.raises(ValueError):
        ledger.record(_result("r1", PaymentStatus.SUCCESS))


def test_mirror_failure_is_logged_not_raised(caplog):
    def _mirror(result):
        raise RuntimeError("supabase down")

    ledger = PaymentLedger(mirror=_mirror)
    ledger.record(_result("r1", PaymentStatus.SUCCESS))
    assert ledger.get("r1") is not None
    assert "mirror failed" in caplog.text


def test_register_order_conflict():
    ledger = PaymentLedger()
    now = datetime.now(timezone.utc)
    ledger.register_order(Order("ord_1", (), Amount("10.00", "USD"), now))
    ledger.register_order(Order("ord_1", (), Amount("10.00", "USD"), now))
    with pytest.raises(CartConflict):
        ledger.register_order(Order("ord_1", (), Amount("12.00", "USD"), now))


def test_insert_payment_row(monkeypatch):
    inserted = []

    class _Table:
        def insert(self, row):
            inserted.append(row)
            return self

        def execute(self):
            return type("Res", (), {"data": [inserted[-1]]})()

    class _Client:
        def table(self, name):
            assert name == "payments"
            return _Table()

    monkeypatch.setattr("fomo_backend.infra.supabase_client.is_configured", lambda: True)
    monkeypatch.setattr("fomo_backend.infra.supabase_client.get_service_supabase", lambda: _Client())

    row = payments_repo.insert_payment(_result("r1", PaymentStatus.SUCCESS))
    assert row["order_id"] == "tier_vip"
    assert row["amount_minor_units"] == 4999
    assert row["status"] == "success"


def test_insert_payment_noop_without_supabase():
    assert payments_repo.insert_payment(_result("r1", PaymentStatus.SUCCESS)) is None
