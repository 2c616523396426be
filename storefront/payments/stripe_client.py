"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Les exceptions du SDK (stripe.StripeError et dérivées) remontent telles quelles;
la traduction en erreurs métier est faite par payments.gateway.
"""
import stripe
from typing import Any, Dict, List, Optional

from storefront.config import STRIPE_SECRET_KEY, STRIPE_API_VERSION
from storefront.errors import GatewayInitError

# module storefront.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key et la version d'API.
    - GatewayInitError si la clé secrète est absente.
    """
    if not STRIPE_SECRET_KEY:
        raise GatewayInitError("Payment service unavailable (STRIPE_SECRET_KEY missing)")
    stripe.api_key = STRIPE_SECRET_KEY
    if STRIPE_API_VERSION:
        stripe.api_version = STRIPE_API_VERSION
    return stripe

def is_configured() -> bool:
    return bool(STRIPE_SECRET_KEY)

def _as_dict(obj: Any) -> Dict[str, Any]:
    # stripe retourne un StripeObject; on le traite comme dict-compatible
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)

def create_payment_intent(
    *,
    amount_cents: int,
    currency: str,
    metadata: Dict[str, str],
    receipt_email: Optional[str] = None,
    shipping: Optional[Dict[str, Any]] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée un PaymentIntent carte, confirmé ensuite avec le PaymentMethod capturé par Stripe.js
    (les coordonnées de facturation y sont déjà attachées côté navigateur).
    Retour: dict incluant "id", "client_secret", "status".
    """
    require_stripe()
    params: Dict[str, Any] = {
        "amount": int(amount_cents),
        "currency": currency,
        "metadata": metadata,
        "payment_method_types": ["card"],
    }
    if receipt_email:
        params["receipt_email"] = receipt_email
    if shipping:
        params["shipping"] = shipping
    if idempotency_key:
        params["idempotency_key"] = idempotency_key
    intent = stripe.PaymentIntent.create(**params)
    return _as_dict(intent)

def confirm_payment_intent(intent_id: str, *, payment_method: str) -> Dict[str, Any]:
    require_stripe()
    return _as_dict(stripe.PaymentIntent.confirm(intent_id, payment_method=payment_method))

def retrieve_payment_intent(intent_id: str) -> Dict[str, Any]:
    require_stripe()
    return _as_dict(stripe.PaymentIntent.retrieve(intent_id))

def search_payment_intents(correlation_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    """
    PaymentIntents portant metadata.correlation_id (API Search de Stripe).
    Sert à retrouver un paiement inline quand le registre n'a pas pu mémoriser sa référence.
    """
    require_stripe()
    value = str(correlation_id).replace("'", "\\'")
    result = stripe.PaymentIntent.search(query=f"metadata['correlation_id']:'{value}'", limit=limit)
    return [_as_dict(intent) for intent in (getattr(result, "data", None) or [])]

def create_price(
    *,
    amount_cents: int,
    currency: str,
    product_name: str,
    metadata: Dict[str, str],
    interval: str = "month",
) -> Dict[str, Any]:
    """Crée un Price récurrent (dons mensuels)."""
    require_stripe()
    price = stripe.Price.create(
        unit_amount=int(amount_cents),
        currency=currency,
        recurring={"interval": interval},
        product_data={"name": product_name, "metadata": metadata},
    )
    return _as_dict(price)

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    mode: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, Any],
    customer_email: Optional[str] = None,
    expires_at: Optional[int] = None,
    subscription_data: Optional[Dict[str, Any]] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout.
    - line_items: lignes Stripe (price/quantity ou price_data)
    - mode: "payment" ou "subscription"
    - success_url / cancel_url: URLs de redirection (portent l'id de corrélation)
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    params: Dict[str, Any] = {
        "line_items": line_items,
        "mode": mode,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "payment_method_types": ["card"],
    }
    if customer_email:
        params["customer_email"] = customer_email
    if expires_at:
        params["expires_at"] = int(expires_at)
    if subscription_data:
        params["subscription_data"] = subscription_data
    if idempotency_key:
        params["idempotency_key"] = idempotency_key
    session = stripe.checkout.Session.create(**params)
    return _as_dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "status", "payment_status", "metadata", "subscription".
    """
    require_stripe()
    return _as_dict(stripe.checkout.Session.retrieve(session_id))

def cancel_subscription(subscription_id: str) -> Dict[str, Any]:
    require_stripe()
    return _as_dict(stripe.Subscription.cancel(subscription_id))
