def test_health_root(client):
    assert client.get("/health").json() == {"ok": True}


def test_health_checkout_reports_configuration(client, monkeypatch):
    monkeypatch.setattr("storefront.payments.stripe_client.is_configured", lambda: False)
    body = client.get("/health/checkout").json()
    assert body["stripe_configured"] is False
    # DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1 dans conftest
    assert body["rate_limit"]["enabled"] is False
