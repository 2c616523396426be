from decimal import Decimal

import pytest

from storefront.errors import NotFound, PersistenceError
from storefront.ledger.models import LedgerRecord, RecordFilter, RecordKind, RecordStatus


def _order(**kwargs):
    data = dict(kind=RecordKind.ORDER, payment_method="inline-card", amount=Decimal("40.00"), buyer_id="u1")
    data.update(kwargs)
    return LedgerRecord(**data)

def test_create_forces_pending_and_generates_id(ledger, ledger_repo):
    record_id = ledger.create(_order(status=RecordStatus.PAID, id="forged"))
    assert record_id != "forged"
    stored = ledger.fetch(record_id, RecordKind.ORDER)
    assert stored.status == RecordStatus.PENDING
    assert stored.created_at is not None
    assert stored.amount == Decimal("40.00")

def test_create_raises_persistence_error(ledger, ledger_repo):
    ledger_repo.fail_insert = True
    with pytest.raises(PersistenceError):
        ledger.create(_order())

def test_update_status_sets_timestamps(ledger):
    record_id = ledger.create(_order())
    assert ledger.update_status(record_id, RecordStatus.PAID, "pi_1", kind=RecordKind.ORDER) is True
    record = ledger.fetch(record_id)
    assert record.status == RecordStatus.PAID
    assert record.processor_reference == "pi_1"
    assert record.paid_at is not None

def test_terminal_status_never_changes(ledger):
    record_id = ledger.create(_order())
    assert ledger.update_status(record_id, RecordStatus.FAILED, kind=RecordKind.ORDER, failure_reason="declined")
    assert ledger.update_status(record_id, RecordStatus.PAID, "pi_late", kind=RecordKind.ORDER) is False
    record = ledger.fetch(record_id)
    assert record.status == RecordStatus.FAILED
    assert record.failure_reason == "declined"
    assert record.processor_reference is None

def test_second_racing_update_is_noop(ledger, ledger_repo):
    record_id = ledger.create(_order())
    first = ledger.update_status(record_id, RecordStatus.PAID, "pi_a", kind=RecordKind.ORDER)
    second = ledger.update_status(record_id, RecordStatus.FAILED, "pi_b", kind=RecordKind.ORDER)
    assert (first, second) == (True, False)
    assert ledger.fetch(record_id).processor_reference == "pi_a"

def test_recurrence_constraint_enforced(ledger):
    record_id = ledger.create(_order())
    # 'active' est réservé aux dons récurrents
    assert ledger.update_status(record_id, RecordStatus.ACTIVE, kind=RecordKind.ORDER) is False
    assert ledger.update_status(record_id, RecordStatus.PENDING, kind=RecordKind.ORDER) is False

def test_recurring_lifecycle(ledger):
    donation = LedgerRecord(kind=RecordKind.DONATION, payment_method="hosted-redirect", amount=Decimal("25"), recurring=True)
    record_id = ledger.create(donation)
    assert ledger.update_status(record_id, RecordStatus.ACTIVE, "cs_1", subscription_reference="sub_1")
    assert ledger.update_status(record_id, RecordStatus.CANCELLED)
    record = ledger.fetch(record_id)
    assert record.status == RecordStatus.CANCELLED
    assert record.subscription_reference == "sub_1"
    assert record.cancelled_at is not None
    assert ledger.update_status(record_id, RecordStatus.CANCELLED) is False

def test_extra_fields_are_whitelisted(ledger, ledger_repo):
    record_id = ledger.create(_order())
    ledger.update_status(record_id, RecordStatus.PAID, kind=RecordKind.ORDER, amount="0.01")
    assert ledger.fetch(record_id).amount == Decimal("40.00")

def test_attach_reference_only_while_pending(ledger):
    record_id = ledger.create(_order())
    assert ledger.attach_reference(record_id, "cs_1", kind=RecordKind.ORDER)
    assert ledger.fetch(record_id).status == RecordStatus.PENDING
    ledger.update_status(record_id, RecordStatus.PAID, kind=RecordKind.ORDER)
    assert ledger.attach_reference(record_id, "cs_2", kind=RecordKind.ORDER) is False
    assert ledger.fetch(record_id).processor_reference == "cs_1"

def test_fetch_unknown_raises_not_found(ledger):
    with pytest.raises(NotFound):
        ledger.fetch("missing")

def test_list_by_buyer_filters_and_orders(ledger, record_factory):
    record_factory("d1", recurring=True, status=RecordStatus.ACTIVE, created_at="2026-01-01T10:00:00+00:00")
    record_factory("d2", recurring=True, created_at="2026-03-01T10:00:00+00:00")
    record_factory("d3", recurring=False, created_at="2026-02-01T10:00:00+00:00")
    record_factory("d4", recurring=True, buyer_id="someone-else")
    record_factory("o1", kind=RecordKind.ORDER, created_at="2026-04-01T10:00:00+00:00")

    recurring = ledger.list_by_buyer("test-user", RecordFilter(kind=RecordKind.DONATION, recurring=True))
    assert [r.id for r in recurring] == ["d2", "d1"]

    everything = ledger.list_by_buyer("test-user")
    assert [r.id for r in everything] == ["o1", "d2", "d3", "d1"]

    active = ledger.list_by_buyer("test-user", RecordFilter(statuses=[RecordStatus.ACTIVE]))
    assert [r.id for r in active] == ["d1"]
