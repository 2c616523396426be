import os

# Avant l'import de l'app: pas de Redis pour le rate limiting en tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app_setup import dependencies as deps
from storefront.app_setup.factory import create_app
from storefront.cart.models import CartItem
from storefront.cart.storage import MemoryStorage
from storefront.cart.store import CartStore
from storefront.ledger.models import LedgerRecord, RecordKind, RecordStatus
from storefront.ledger.service import OrderLedger
from storefront.payments.gateway import PaymentGateway
from storefront.reconciliation.confirmation import StripeConfirmationClient
from storefront.reconciliation.service import ConfirmationReconciler
from storefront.subscriptions.service import SubscriptionManager
from storefront.utils.security import optional_user, require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class InMemoryLedgerRepository:
    """
    Double du module storefront.ledger.repository.
    update_record_status reproduit l'écriture conditionnelle (id + statut source + récurrence).
    """

    def __init__(self):
        self.rows: Dict[RecordKind, Dict[str, Dict[str, Any]]] = {RecordKind.ORDER: {}, RecordKind.DONATION: {}}
        self.calls: List[tuple] = []
        self.fail_insert = False

    @property
    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "update")]

    def seed(self, record: LedgerRecord) -> LedgerRecord:
        self.rows[record.kind][record.id] = record.model_dump(mode="json")
        return record

    def insert_record(self, kind, row):
        self.calls.append(("insert", row.get("id")))
        if self.fail_insert:
            return None
        self.rows[RecordKind(kind)][row["id"]] = dict(row)
        return dict(row)

    def get_record(self, kind, record_id):
        self.calls.append(("get", record_id))
        row = self.rows[RecordKind(kind)].get(record_id)
        return dict(row) if row else None

    def update_record_status(self, kind, record_id, changes, allowed_from, recurring=None):
        self.calls.append(("update", record_id, changes.get("status")))
        row = self.rows[RecordKind(kind)].get(record_id)
        if row is None:
            return None
        if row["status"] not in {RecordStatus(s).value for s in allowed_from}:
            return None
        if recurring is not None and bool(row.get("recurring")) != recurring:
            return None
        row.update(changes)
        return dict(row)

    def list_records(self, kind, buyer_id, recurring=None, statuses=None, limit=50):
        wanted = {RecordStatus(s).value for s in statuses} if statuses else None
        rows = [
            r for r in self.rows[RecordKind(kind)].values()
            if r.get("buyer_id") == buyer_id
            and (recurring is None or bool(r.get("recurring")) == recurring)
            and (wanted is None or r["status"] in wanted)
        ]
        rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return [dict(r) for r in rows[:limit]]


@pytest.fixture
def ledger_repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()

@pytest.fixture
def ledger(ledger_repo) -> OrderLedger:
    return OrderLedger(repository=ledger_repo)

@pytest.fixture
def fake_stripe() -> MagicMock:
    """Double du module storefront.payments.stripe_client (réponses Stripe nominales)."""
    client = MagicMock(name="stripe_client")
    client.require_stripe.return_value = None
    client.is_configured.return_value = True
    client.create_payment_intent.return_value = {
        "id": "pi_123", "client_secret": "pi_123_secret_abc", "status": "requires_confirmation",
    }
    client.confirm_payment_intent.return_value = {"id": "pi_123", "status": "succeeded"}
    client.create_price.return_value = {"id": "price_monthly_1"}
    client.create_session.return_value = {"id": "cs_test_123", "url": "https://checkout.stripe.test/pay/cs_test_123"}
    client.get_session.return_value = {}
    client.retrieve_payment_intent.return_value = {}
    client.search_payment_intents.return_value = []
    client.cancel_subscription.return_value = {"id": "sub_1", "status": "canceled"}
    return client

@pytest.fixture
def gateway(fake_stripe) -> PaymentGateway:
    return PaymentGateway(client=fake_stripe, clock=lambda: 1_700_000_000)

@pytest.fixture
def cart_storage() -> MemoryStorage:
    return MemoryStorage()

@pytest.fixture
def cart(cart_storage) -> CartStore:
    return CartStore(cart_storage)

@pytest.fixture
def tee() -> CartItem:
    return CartItem(product_id="tee", variant="M", name="Logo Tee", unit_price=Decimal("20.00"), price_ref="price_tee")

def make_record(
    record_id: str,
    kind: RecordKind = RecordKind.DONATION,
    status: RecordStatus = RecordStatus.PENDING,
    recurring: bool = False,
    buyer_id: Optional[str] = "test-user",
    **extra: Any,
) -> LedgerRecord:
    return LedgerRecord(
        id=record_id,
        kind=kind,
        status=status,
        recurring=recurring,
        buyer_id=buyer_id,
        payment_method=extra.pop("payment_method", "hosted-redirect"),
        amount=extra.pop("amount", Decimal("25.00")),
        created_at=extra.pop("created_at", "2026-01-01T10:00:00+00:00"),
        **extra,
    )

@pytest.fixture
def record_factory(ledger_repo):
    def _make(record_id: str, **kwargs) -> LedgerRecord:
        return ledger_repo.seed(make_record(record_id, **kwargs))
    return _make

# Supabase n'est jamais joint en tests
@pytest.fixture(autouse=True)
def mock_supabase(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture
def fake_user() -> Dict[str, Any]:
    return {"id": "test-user", "email": "test@example.com", "token": "fake-token"}

@pytest.fixture()
def client(app, ledger, fake_stripe, cart_storage, fake_user) -> Generator[TestClient, None, None]:
    """TestClient avec registre en mémoire, Stripe simulé et utilisateur connecté."""
    app.dependency_overrides[deps.get_ledger] = lambda: ledger
    app.dependency_overrides[deps.get_gateway] = lambda: PaymentGateway(client=fake_stripe)
    app.dependency_overrides[deps.get_cart_storage] = lambda: cart_storage
    app.dependency_overrides[deps.get_reconciler] = lambda: ConfirmationReconciler(
        ledger=ledger, confirmation=StripeConfirmationClient(client=fake_stripe)
    )
    app.dependency_overrides[deps.get_subscription_manager] = lambda: SubscriptionManager(ledger=ledger, client=fake_stripe)
    app.dependency_overrides[require_user] = lambda: fake_user
    app.dependency_overrides[optional_user] = lambda: fake_user
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

@pytest.fixture()
def guest_client(app, client) -> TestClient:
    """Même client, sans acheteur connecté."""
    app.dependency_overrides[optional_user] = lambda: None
    return client
