# module storefront.checkout.views

"""Endpoints de soumission du checkout.
- POST /api/v1/checkout/order: achat du panier courant (inline ou hosted).
- POST /api/v1/checkout/donation: don ponctuel ou mensuel.
- GET /api/v1/checkout/config: clé publiable Stripe et bornes de montants pour le front.
Sécurité:
- optional_user: les invités peuvent acheter et donner; un don mensuel exige un acheteur connecté.
- optional_rate_limit: limite la fréquence des tentatives de paiement.
Les erreurs métier (CheckoutError) sont traduites par app_setup.exception_handlers.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.app_setup.dependencies import get_cart_store, get_orchestrator
from storefront.cart.store import CartStore
from storefront.config import (
    DEFAULT_CURRENCY,
    MAX_DONATION_AMOUNT,
    MIN_DONATION_AMOUNT,
    MIN_ORDER_AMOUNT,
    STRIPE_PUBLIC_KEY,
)
from storefront.ledger.models import PaymentMethod
from storefront.payments.models import CardInput
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import optional_user
from .models import BuyerInput, CheckoutOutcome, DonationSelection
from .service import CheckoutOrchestrator
from .tiers import DONATION_TIERS

router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


class OrderBody(BaseModel):
    buyer: BuyerInput
    payment_method: PaymentMethod = PaymentMethod.HOSTED
    card: Optional[CardInput] = None


class DonationBody(BaseModel):
    buyer: BuyerInput
    donation: DonationSelection
    payment_method: PaymentMethod = PaymentMethod.HOSTED
    card: Optional[CardInput] = None


def _buyer_id(user: Optional[Dict[str, Any]]) -> Optional[str]:
    return (user or {}).get("id") or None

@router.post("/order", response_model=CheckoutOutcome, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def submit_order(
    body: OrderBody,
    cart: CartStore = Depends(get_cart_store),
    user: Optional[Dict[str, Any]] = Depends(optional_user),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """
    Étapes: validation -> commande 'pending' -> paiement.
    - inline 'succeeded': commande 'paid', panier vidé;
    - inline 'requires_action': client_secret renvoyé pour l'authentification 3DS;
    - hosted: redirect_url renvoyée, le panier est conservé jusqu'à la confirmation.
    """
    return orchestrator.submit(body.buyer, cart, body.payment_method, card=body.card, buyer_id=_buyer_id(user))

@router.post("/donation", response_model=CheckoutOutcome, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def submit_donation(
    body: DonationBody,
    user: Optional[Dict[str, Any]] = Depends(optional_user),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.submit(body.buyer, body.donation, body.payment_method, card=body.card, buyer_id=_buyer_id(user))

@router.get("/donation-tiers")
def list_donation_tiers() -> List[Dict[str, Any]]:
    return [{"amount": str(t.amount), "label": t.label, "description": t.description} for t in DONATION_TIERS]

@router.get("/config")
def checkout_config() -> Dict[str, Any]:
    """Paramètres publics du checkout: clé publiable pour Stripe.js et bornes de montants."""
    return {
        "publishable_key": STRIPE_PUBLIC_KEY or None,
        "currency": DEFAULT_CURRENCY,
        "min_order_amount": str(MIN_ORDER_AMOUNT),
        "min_donation_amount": str(MIN_DONATION_AMOUNT),
        "max_donation_amount": str(MAX_DONATION_AMOUNT),
    }
