import pytest
import stripe

from storefront.errors import CancellationError, InvalidStateError, NotFound
from storefront.ledger.models import RecordKind, RecordStatus
from storefront.subscriptions.service import SubscriptionManager


@pytest.fixture
def manager(ledger, fake_stripe):
    return SubscriptionManager(ledger=ledger, client=fake_stripe)

def _active(record_factory, record_id="S1", **kwargs):
    return record_factory(record_id, recurring=True, status=RecordStatus.ACTIVE, subscription_reference="sub_1", **kwargs)

def test_list_returns_recurring_donations_only(manager, record_factory):
    _active(record_factory, "S1", created_at="2026-01-01T00:00:00+00:00")
    _active(record_factory, "S2", created_at="2026-02-01T00:00:00+00:00")
    record_factory("one-time")
    record_factory("O1", kind=RecordKind.ORDER, recurring=False)
    assert [r.id for r in manager.list("test-user")] == ["S2", "S1"]

def test_cancel_active_subscription(manager, fake_stripe, record_factory):
    _active(record_factory)
    record = manager.cancel("S1", "test-user")
    fake_stripe.cancel_subscription.assert_called_once_with("sub_1")
    assert record.status == RecordStatus.CANCELLED
    assert record.cancelled_at is not None

def test_cancel_already_cancelled_is_invalid_state(manager, ledger_repo, fake_stripe, record_factory):
    record_factory("S1", recurring=True, status=RecordStatus.CANCELLED, subscription_reference="sub_1")
    with pytest.raises(InvalidStateError):
        manager.cancel("S1", "test-user")
    fake_stripe.cancel_subscription.assert_not_called()
    assert ledger_repo.writes == []

def test_cancel_other_buyers_subscription_is_not_found(manager, fake_stripe, record_factory):
    _active(record_factory, buyer_id="someone-else")
    with pytest.raises(NotFound):
        manager.cancel("S1", "test-user")
    fake_stripe.cancel_subscription.assert_not_called()

def test_cancel_without_subscription_reference(manager, record_factory):
    record_factory("S1", recurring=True, status=RecordStatus.ACTIVE)
    with pytest.raises(InvalidStateError):
        manager.cancel("S1", "test-user")

def test_processor_refusal_leaves_record_unchanged(manager, ledger, fake_stripe, record_factory):
    _active(record_factory)
    fake_stripe.cancel_subscription.side_effect = stripe.InvalidRequestError("No such subscription", "id")
    with pytest.raises(CancellationError):
        manager.cancel("S1", "test-user")
    assert ledger.fetch("S1").status == RecordStatus.ACTIVE
