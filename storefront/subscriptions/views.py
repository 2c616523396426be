# module storefront.subscriptions.views

"""Dons mensuels de l'acheteur connecté.
- GET /api/v1/subscriptions: liste (plus récents d'abord).
- POST /api/v1/subscriptions/{record_id}/cancel: annulation (409 si déjà annulé, 502 si Stripe refuse).
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from storefront.app_setup.dependencies import get_subscription_manager
from storefront.utils.security import require_user
from .service import SubscriptionManager

router = APIRouter(prefix="/api/v1/subscriptions", tags=["Subscriptions API"])

_FIELDS = {"id", "status", "amount", "currency", "tier_description", "created_at", "paid_at", "cancelled_at"}

@router.get("")
def list_subscriptions(
    user: Dict[str, Any] = Depends(require_user),
    manager: SubscriptionManager = Depends(get_subscription_manager),
) -> List[Dict[str, Any]]:
    return [r.model_dump(mode="json", include=_FIELDS) for r in manager.list(user["id"])]

@router.post("/{record_id}/cancel")
def cancel_subscription(
    record_id: str,
    user: Dict[str, Any] = Depends(require_user),
    manager: SubscriptionManager = Depends(get_subscription_manager),
) -> Dict[str, Any]:
    record = manager.cancel(record_id, user["id"])
    return record.model_dump(mode="json", include=_FIELDS)
