# module storefront.reconciliation.views

"""Retour du parcours hébergé (sans webhook).
- GET /api/v1/checkout/confirm?order_id=...&session_id=... (ou donation_id=...)
- POST /api/v1/checkout/confirm {"correlation_id", "kind"?, "session_id"?}
Relance la réconciliation: idempotent, un enregistrement déjà réglé est renvoyé tel quel.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.app_setup.dependencies import get_cart_store, get_reconciler
from storefront.cart.store import CartStore
from storefront.ledger.models import RecordKind
from .service import ConfirmationReconciler

router = APIRouter(prefix="/api/v1/checkout/confirm", tags=["Checkout API"])


class ConfirmBody(BaseModel):
    correlation_id: str
    kind: Optional[RecordKind] = None
    session_id: Optional[str] = None


def _public(record) -> Dict[str, Any]:
    return record.model_dump(mode="json", include={
        "id", "kind", "status", "amount", "currency", "recurring",
        "processor_reference", "failure_reason", "paid_at", "cancelled_at",
    })

@router.get("")
def confirm_from_return_url(
    order_id: Optional[str] = None,
    donation_id: Optional[str] = None,
    session_id: Optional[str] = None,
    reconciler: ConfirmationReconciler = Depends(get_reconciler),
    cart: CartStore = Depends(get_cart_store),
):
    if order_id:
        record = reconciler.reconcile(order_id, RecordKind.ORDER, session_id=session_id, cart=cart)
    elif donation_id:
        record = reconciler.reconcile(donation_id, RecordKind.DONATION, session_id=session_id)
    else:
        raise HTTPException(status_code=400, detail="order_id or donation_id is required")
    return _public(record)

@router.post("")
def confirm(
    body: ConfirmBody,
    reconciler: ConfirmationReconciler = Depends(get_reconciler),
    cart: CartStore = Depends(get_cart_store),
):
    record = reconciler.reconcile(body.correlation_id, body.kind, session_id=body.session_id, cart=cart)
    return _public(record)
