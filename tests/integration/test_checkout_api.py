import stripe

from storefront.errors import GatewayInitError
from storefront.ledger.models import RecordKind, RecordStatus

TEE = {"product_id": "tee", "variant": "M", "name": "Logo Tee", "unit_price": "20.00", "price_ref": "price_tee"}
BUYER = {
    "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com", "phone": "555-0100",
    "address": "1 Main St", "city": "Springfield", "zip_code": "12345", "country": "us",
}


def _fill_cart(client, quantity=2):
    client.post("/api/v1/cart/items", json={"item": TEE, "quantity": quantity})


def test_hosted_order_redirects_and_keeps_cart(client, ledger_repo, fake_stripe):
    _fill_cart(client)
    r = client.post("/api/v1/checkout/order", json={"buyer": BUYER})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "redirect"
    assert body["redirect_url"] == "https://checkout.stripe.test/pay/cs_test_123"

    row = ledger_repo.rows[RecordKind.ORDER][body["record_id"]]
    assert row["status"] == RecordStatus.PENDING.value
    assert row["processor_reference"] == "cs_test_123"
    assert row["shipping"]["country"] == "US"

    kwargs = fake_stripe.create_session.call_args.kwargs
    assert f"order_id={body['record_id']}" in kwargs["success_url"]
    assert client.get("/api/v1/cart").json()["count"] == 2


def test_inline_order_success_clears_cart(client, ledger_repo):
    _fill_cart(client)
    r = client.post("/api/v1/checkout/order", json={
        "buyer": BUYER, "payment_method": "inline-card", "card": {"payment_method": "pm_card_visa"},
    })
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "succeeded"
    assert ledger_repo.rows[RecordKind.ORDER][body["record_id"]]["status"] == "paid"
    assert client.get("/api/v1/cart").json()["count"] == 0


def test_invalid_submission_returns_field_errors(client, ledger_repo, fake_stripe):
    _fill_cart(client)
    r = client.post("/api/v1/checkout/order", json={"buyer": {**BUYER, "email": "nope", "city": ""}})
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["errors"]["email"] == "Please enter a valid email"
    assert "city" in body["errors"]
    assert ledger_repo.writes == []
    fake_stripe.create_session.assert_not_called()


def test_empty_cart_is_rejected(client):
    r = client.post("/api/v1/checkout/order", json={"buyer": BUYER})
    assert r.status_code == 422
    assert r.json()["errors"]["cart"] == "Your cart is empty"


def test_declined_card_is_402_and_cart_kept(client, ledger_repo, fake_stripe):
    _fill_cart(client)
    fake_stripe.confirm_payment_intent.side_effect = stripe.CardError("Your card was declined.", None, "card_declined")
    r = client.post("/api/v1/checkout/order", json={
        "buyer": BUYER, "payment_method": "inline-card", "card": {"payment_method": "pm_card_chargeDeclined"},
    })
    assert r.status_code == 402
    assert r.json()["code"] == "card_error"
    rows = list(ledger_repo.rows[RecordKind.ORDER].values())
    assert [row["status"] for row in rows] == ["failed"]
    assert client.get("/api/v1/cart").json()["count"] == 2


def test_processor_not_configured_is_503(client, ledger_repo, fake_stripe):
    _fill_cart(client)
    fake_stripe.require_stripe.side_effect = GatewayInitError("Payment service unavailable")
    r = client.post("/api/v1/checkout/order", json={"buyer": BUYER})
    assert r.status_code == 503
    assert r.json()["code"] == "gateway_unavailable"
    rows = list(ledger_repo.rows[RecordKind.ORDER].values())
    assert rows[0]["status"] == "failed"


def test_one_time_donation_as_guest(guest_client, ledger_repo):
    r = guest_client.post("/api/v1/checkout/donation", json={
        "buyer": {"first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
        "donation": {"amount": "50", "recurring": False},
    })
    assert r.status_code == 200
    body = r.json()
    assert body["kind"] == "donation"
    row = ledger_repo.rows[RecordKind.DONATION][body["record_id"]]
    assert row["buyer_id"] is None
    assert row["amount"] == "50.00"


def test_monthly_donation_requires_sign_in(guest_client, ledger_repo):
    r = guest_client.post("/api/v1/checkout/donation", json={
        "buyer": {"first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
        "donation": {"amount": "25", "recurring": True},
    })
    assert r.status_code == 422
    assert "recurring" in r.json()["errors"]
    assert ledger_repo.writes == []


def test_monthly_donation_creates_subscription_session(client, fake_stripe):
    r = client.post("/api/v1/checkout/donation", json={
        "buyer": {"first_name": "Grace", "last_name": "Hopper", "email": "grace@example.com"},
        "donation": {"amount": "25", "recurring": True},
    })
    assert r.status_code == 200
    assert fake_stripe.create_session.call_args.kwargs["mode"] == "subscription"


def test_donation_tiers(client):
    tiers = client.get("/api/v1/checkout/donation-tiers").json()
    assert len(tiers) == 8
    assert {"amount", "label", "description"} <= set(tiers[0])


def test_checkout_config_exposes_publishable_key(client, monkeypatch):
    monkeypatch.setattr("storefront.checkout.views.STRIPE_PUBLIC_KEY", "pk_test_123")
    body = client.get("/api/v1/checkout/config").json()
    assert body["publishable_key"] == "pk_test_123"
    assert body["currency"] == "usd"
    assert body["min_order_amount"] == "0.50"
    assert body["max_donation_amount"] == "50000.00"
