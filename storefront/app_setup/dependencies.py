"""
Fournisseurs FastAPI (Depends) des services métier.
Les tests remplacent ces fonctions via app.dependency_overrides (ledger en mémoire, Stripe simulé).
"""
import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response

from storefront.cart.storage import KeyValueStorage, RedisStorage
from storefront.cart.store import CartStore
from storefront.checkout.service import CheckoutOrchestrator
from storefront.config import CART_COOKIE_NAME, CART_STORAGE_KEY, CART_TTL_SECONDS, COOKIE_SECURE
from storefront.infra.redis_client import get_redis
from storefront.ledger.service import OrderLedger
from storefront.payments.gateway import PaymentGateway
from storefront.reconciliation.service import ConfirmationReconciler
from storefront.subscriptions.service import SubscriptionManager
from storefront.utils.security import optional_user

# module storefront.app_setup.dependencies
def get_ledger() -> OrderLedger:
    return OrderLedger()

def get_gateway() -> PaymentGateway:
    return PaymentGateway()

def get_orchestrator(
    ledger: OrderLedger = Depends(get_ledger),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(ledger=ledger, gateway=gateway)

def get_reconciler(ledger: OrderLedger = Depends(get_ledger)) -> ConfirmationReconciler:
    return ConfirmationReconciler(ledger=ledger)

def get_subscription_manager(ledger: OrderLedger = Depends(get_ledger)) -> SubscriptionManager:
    return SubscriptionManager(ledger=ledger)

def get_cart_storage() -> KeyValueStorage:
    return RedisStorage(get_redis(), ttl_seconds=CART_TTL_SECONDS)

def get_cart_store(
    request: Request,
    response: Response,
    user: Optional[Dict[str, Any]] = Depends(optional_user),
    storage: KeyValueStorage = Depends(get_cart_storage),
) -> CartStore:
    """
    Panier du visiteur courant:
    - acheteur connecté: clé dérivée de son id (panier retrouvé sur tout appareil);
    - invité: clé dérivée du cookie 'cart_sid', créé au premier passage.
    """
    if user and user.get("id"):
        owner = f"user:{user['id']}"
    else:
        sid = request.cookies.get(CART_COOKIE_NAME)
        if not sid:
            sid = secrets.token_urlsafe(16)
            response.set_cookie(
                key=CART_COOKIE_NAME,
                value=sid,
                httponly=True,
                secure=COOKIE_SECURE,
                samesite="Lax",
                max_age=CART_TTL_SECONDS,
                path="/",
            )
        owner = f"guest:{sid}"
    return CartStore(storage, storage_key=f"{CART_STORAGE_KEY}:{owner}")
