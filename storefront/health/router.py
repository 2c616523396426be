from fastapi import APIRouter, Request

from storefront.payments import stripe_client
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/checkout")
def health_checkout(request: Request):
    return {
        "ok": True,
        "stripe_configured": stripe_client.is_configured(),
        "rate_limit": rate_limit_health_info(request),
    }
