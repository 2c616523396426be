# module storefront.orders.views

"""Historique des commandes de l'acheteur connecté.
- GET /api/v1/orders: commandes de l'acheteur, plus récentes d'abord.
- GET /api/v1/orders/{record_id}: détail d'une commande (404 si elle appartient à un autre acheteur).
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from storefront.app_setup.dependencies import get_ledger
from storefront.errors import NotFound
from storefront.ledger.models import LedgerRecord, RecordFilter, RecordKind
from storefront.ledger.service import OrderLedger
from storefront.utils.security import require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

_FIELDS = {
    "id", "status", "amount", "currency", "items", "shipping", "payment_method",
    "processor_reference", "failure_reason", "created_at", "paid_at",
}

def _public(record: LedgerRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json", include=_FIELDS)

@router.get("")
def list_orders(
    limit: int = Query(50, ge=1, le=100),
    user: Dict[str, Any] = Depends(require_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> List[Dict[str, Any]]:
    records = ledger.list_by_buyer(user["id"], RecordFilter(kind=RecordKind.ORDER, limit=limit))
    return [_public(r) for r in records]

@router.get("/{record_id}")
def get_order(
    record_id: str,
    user: Dict[str, Any] = Depends(require_user),
    ledger: OrderLedger = Depends(get_ledger),
) -> Dict[str, Any]:
    record = ledger.fetch(record_id, RecordKind.ORDER)
    if record.buyer_id != user["id"]:
        raise NotFound(f"Record {record_id} not found")
    return _public(record)
