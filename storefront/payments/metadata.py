"""
Sérialisation/désérialisation des métadonnées Stripe (corrélation registre <-> processeur).
"""
import json
from typing import Any, Dict, Optional, Tuple

from .models import PaymentAttempt

# Stripe limite chaque valeur de metadata à 500 caractères
_MAX_VALUE_LEN = 500

# module storefront.payments.metadata
def make_metadata(attempt: PaymentAttempt) -> Dict[str, str]:
    """
    Métadonnées attachées au PaymentIntent / à la session Checkout.
    - correlation_id: id de l'enregistrement du registre (commande ou don).
    - kind: "order" | "donation".
    - buyer_id: "guest" si l'acheteur n'est pas connecté.
    - shipping_info (commandes): JSON tronqué pour respecter la limite Stripe.
    """
    meta: Dict[str, str] = {
        "correlation_id": attempt.correlation_id,
        "kind": attempt.kind.value,
        "buyer_id": str(attempt.buyer_id or "guest"),
        "customer_name": attempt.buyer.full_name[:_MAX_VALUE_LEN],
    }
    if attempt.buyer.phone:
        meta["customer_phone"] = attempt.buyer.phone
    if attempt.kind.value == "donation":
        meta["frequency"] = "monthly" if attempt.recurring else "one_time"
    if attempt.shipping:
        shipping = {"name": attempt.buyer.full_name, **attempt.shipping.model_dump()}
        meta["shipping_info"] = json.dumps(shipping)[:_MAX_VALUE_LEN]
    return meta

def extract_metadata(obj: Dict[str, Any]) -> Dict[str, Any]:
    """
    Lit les métadonnées d'un objet Stripe (session, PaymentIntent) ou d'un event webhook.
    Tolérant: retourne {} si la structure est inattendue.
    """
    if not isinstance(obj, dict):
        return {}
    if "data" in obj and isinstance(obj.get("data"), dict):
        obj = obj["data"].get("object") or {}
    meta = obj.get("metadata") or {}
    return meta if isinstance(meta, dict) else {}

def extract_correlation(obj: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """Retourne (correlation_id, kind) depuis les métadonnées, (None, None) si absentes."""
    meta = extract_metadata(obj)
    return meta.get("correlation_id"), meta.get("kind")
