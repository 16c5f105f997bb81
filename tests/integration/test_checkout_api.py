from datetime import datetime

NEXT_YEAR = datetime.now().year + 1


def _card(number="4242 4242 4242 4242", **overrides):
    body = {"number": number, "expiryMonth": 12, "expiryYear": NEXT_YEAR, "cvc": "123", "holderName": "Test User"}
    body.update(overrides)
    return body


def _tokenize(client, number="4242 4242 4242 4242"):
    r = client.post("/tokenize", json=_card(number))
    assert r.status_code == 200, r.text
    return r.json()["token"]


def _charge(client, token, minor=4999, currency="USD", order_id="tier_vip"):
    return client.post("/charge", json={
        "token": token,
        "amountMinorUnits": minor,
        "currency": currency,
        "orderId": order_id,
    })


def test_tokenize_returns_masked_token(client):
    r = client.post("/tokenize", json=_card())
    assert r.status_code == 200
    body = r.json()
    assert body["token"].startswith("tok_")
    assert body["brand"] == "visa"
    assert body["last4"] == "4242"
    assert body["expiryMonth"] == 12
    assert "4242424242424242" not in r.text
    assert r.headers["Cache-Control"].startswith("no-store")


def test_tokenize_invalid_number(client):
    r = client.post("/tokenize", json=_card("1234 5678"))
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_card_number"
    assert err["reason"] == "length"


def test_tokenize_expired_card(client):
    r = client.post("/tokenize", json=_card(expiryMonth=1, expiryYear=2020))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "expired_card"


def test_tokenize_malformed_body(client):
    r = client.post("/tokenize", json={"number": "4242424242424242"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_request"


def test_charge_success_then_replay(client):
    token = _tokenize(client)
    first = _charge(client, token)
    assert first.status_code == 200, first.text
    body = first.json()
    assert body["status"] == "success"
    assert body["replayed"] is False
    assert body["amountMinorUnits"] == 4999

    second = _charge(client, token)
    assert second.status_code == 200
    assert second.json()["replayed"] is True
    assert second.json()["transactionId"] == body["transactionId"]

    stored = client.get("/charge/tier_vip")
    assert stored.status_code == 200
    assert stored.json()["resultId"] == body["resultId"]


def test_charge_amount_mismatch(client):
    token = _tokenize(client)
    r = _charge(client, token, minor=4998)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "amount_mismatch"
    assert client.get("/charge/tier_vip").status_code == 404


def test_charge_unknown_tier(client):
    r = _charge(client, _tokenize(client), order_id="tier_gold")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "tier_not_found"


def test_charge_declined(client):
    token = _tokenize(client, "4000 0000 0000 0002")
    r = _charge(client, token)
    assert r.status_code == 402
    err = r.json()["error"]
    assert err["code"] == "payment_declined"
    assert err["reason"] == "card_declined"
    assert client.get("/charge/tier_vip").json()["status"] == "failure"


def test_charge_network_error(client):
    token = _tokenize(client, "4000 0000 0000 0119")
    r = _charge(client, token)
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "network_error"


def test_charge_pending(client):
    token = _tokenize(client, "4000 0000 0000 3220")
    r = _charge(client, token)
    assert r.status_code == 200
    assert r.json()["status"] == "pending"


def test_already_settled_with_other_token(client):
    r = client.post("/orders", json={"orderId": "ord_bar_9", "items": [{"id": "drink_beer", "quantity": 2}]})
    assert r.status_code == 200, r.text
    _charge(client, _tokenize(client), minor=1300, order_id="ord_bar_9")
    r = _charge(client, _tokenize(client), minor=1300, order_id="ord_bar_9")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "already_settled"


def test_tier_sold_to_several_customers(client):
    first = _charge(client, _tokenize(client))
    second = _charge(client, _tokenize(client))
    assert first.status_code == 200 and second.status_code == 200
    assert first.json()["transactionId"] != second.json()["transactionId"]
    assert second.json()["replayed"] is False


def test_charge_invalid_currency(client):
    r = _charge(client, _tokenize(client), currency="ZZZ")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_amount"


def test_order_then_charge(client):
    r = client.post("/orders", json={
        "orderId": "ord_night_1",
        "items": [{"id": "day-pass"}, {"id": "drink_mojito", "quantity": 2}],
    })
    assert r.status_code == 200, r.text
    order = r.json()
    assert order["totalMinorUnits"] == 3597

    paid = _charge(client, _tokenize(client), minor=3597, order_id="ord_night_1")
    assert paid.status_code == 200
    assert paid.json()["orderId"] == "ord_night_1"


def test_order_rejects_two_tiers(client):
    r = client.post("/orders", json={"items": [{"id": "tier_vip"}, {"id": "tier_standard"}]})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "cart_conflict"


def test_order_unknown_item(client):
    r = client.post("/orders", json={"items": [{"id": "drink_unknown"}]})
    assert r.status_code == 404


def test_order_invalid_quantity(client):
    r = client.post("/orders", json={"items": [{"id": "drink_beer", "quantity": 0}]})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_quantity"


def test_order_rejects_unavailable_drink(client, catalog):
    from fomo_backend.pricing.repository import default_drinks, default_tiers

    drinks = [d._replace(is_available=False) if d.id == "drink_mojito" else d for d in default_drinks("USD")]
    catalog.refresh(default_tiers("USD"), drinks)

    r = client.post("/orders", json={"items": [{"id": "drink_mojito", "quantity": 2}]})
    assert r.status_code == 409
    err = r.json()["error"]
    assert err["code"] == "cart_conflict"
    assert err["reason"] == "unavailable"
