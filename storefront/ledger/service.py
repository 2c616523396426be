"""
OrderLedger: cas d'usage du registre des commandes et dons.

- create: trace durable 'pending' AVANT tout appel au processeur de paiement.
- update_status: transition gardée par l'écriture conditionnelle du repository;
  quand deux flux (réconciliation client, notification hors bande) visent le
  même enregistrement, le second ne correspond plus à aucune ligne et devient
  un no-op journalisé.
- fetch / list_by_buyer: lectures.
Les montants et lignes ne sont jamais réécrits après create.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4
import logging

from storefront.errors import NotFound, PersistenceError
from . import repository as default_repository
from .models import (
    LedgerRecord,
    RecordFilter,
    RecordKind,
    RecordStatus,
    allowed_sources,
    recurring_constraint,
)

logger = logging.getLogger(__name__)

# Champs complémentaires qu'une transition peut renseigner
_EXTRA_FIELDS = {"subscription_reference", "failure_reason"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(record: LedgerRecord) -> datetime:
    created = record.created_at or datetime.min.replace(tzinfo=timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


class OrderLedger:
    def __init__(self, repository=None):
        # Par défaut le module repository (Supabase); un double de test peut être injecté
        self.repository = repository or default_repository

    def create(self, record: LedgerRecord) -> str:
        """Persiste l'enregistrement en 'pending' avec un id généré; PersistenceError si échec."""
        now = _now()
        record_id = uuid4().hex
        pending = record.model_copy(update={
            "id": record_id,
            "status": RecordStatus.PENDING,
            "created_at": now,
            "updated_at": now,
            "paid_at": None,
            "cancelled_at": None,
        })
        saved = self.repository.insert_record(pending.kind, pending.model_dump(mode="json"))
        if not saved:
            raise PersistenceError("Could not start checkout, please try again")
        logger.info("ledger.create kind=%s id=%s amount=%s %s", pending.kind.value, record_id, pending.amount, pending.currency)
        return record_id

    def update_status(
        self,
        record_id: str,
        new_status: RecordStatus,
        processor_reference: Optional[str] = None,
        kind: Optional[RecordKind] = None,
        **extra: Any,
    ) -> bool:
        """
        Applique la transition si elle est légale depuis le statut courant.
        Retourne True si l'écriture a eu lieu, False si elle a été refusée (no-op).
        """
        target = RecordStatus(new_status)
        sources = allowed_sources(target)
        if not sources:
            logger.warning("ledger.update_status rejected id=%s target=%s (not a transition target)", record_id, target.value)
            return False
        if kind is None:
            kind = self.fetch(record_id).kind

        now = _now()
        changes: Dict[str, Any] = {"status": target.value, "updated_at": now.isoformat()}
        if processor_reference:
            changes["processor_reference"] = processor_reference
        if target in (RecordStatus.PAID, RecordStatus.ACTIVE):
            changes["paid_at"] = now.isoformat()
        if target == RecordStatus.CANCELLED:
            changes["cancelled_at"] = now.isoformat()
        for name, value in extra.items():
            if name in _EXTRA_FIELDS and value is not None:
                changes[name] = value

        row = self.repository.update_record_status(
            RecordKind(kind), record_id, changes, sources, recurring_constraint(target)
        )
        if row is None:
            logger.warning(
                "ledger.update_status rejected id=%s target=%s (status already moved or transition illegal)",
                record_id, target.value,
            )
            return False
        logger.info("ledger.update_status id=%s -> %s ref=%s", record_id, target.value, processor_reference)
        return True

    def fetch(self, record_id: str, kind: Optional[RecordKind] = None) -> LedgerRecord:
        kinds = [RecordKind(kind)] if kind else [RecordKind.ORDER, RecordKind.DONATION]
        for k in kinds:
            row = self.repository.get_record(k, record_id)
            if row:
                return LedgerRecord.model_validate(row)
        raise NotFound(f"Record {record_id} not found")

    def list_by_buyer(self, buyer_id: str, record_filter: Optional[RecordFilter] = None) -> List[LedgerRecord]:
        record_filter = record_filter or RecordFilter()
        kinds = [record_filter.kind] if record_filter.kind else [RecordKind.ORDER, RecordKind.DONATION]
        records: List[LedgerRecord] = []
        for k in kinds:
            rows = self.repository.list_records(
                k,
                buyer_id,
                recurring=record_filter.recurring,
                statuses=record_filter.statuses,
                limit=record_filter.limit,
            )
            records.extend(LedgerRecord.model_validate(row) for row in rows)
        records.sort(key=_sort_key, reverse=True)
        return records[: record_filter.limit]

    def attach_reference(self, record_id: str, processor_reference: str, kind: Optional[RecordKind] = None) -> bool:
        """
        Mémorise la référence processeur (ex: id de session Checkout) sur un enregistrement
        encore 'pending', sans changer son statut. False si l'enregistrement a déjà bougé.
        """
        if kind is None:
            kind = self.fetch(record_id).kind
        changes = {"processor_reference": processor_reference, "updated_at": _now().isoformat()}
        row = self.repository.update_record_status(RecordKind(kind), record_id, changes, {RecordStatus.PENDING})
        if row is None:
            logger.warning("ledger.attach_reference ignored id=%s (no longer pending)", record_id)
            return False
        return True
