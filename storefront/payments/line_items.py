"""
Construction des line_items Stripe (pure: pas d'appel Stripe, pas de DB).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from storefront.errors import SessionCreationError
from storefront.ledger.models import OrderLine

# module storefront.payments.line_items
def to_cents(amount: Decimal) -> int:
    """Montant décimal -> centimes (arrondi commercial)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def format_amount(amount: Decimal) -> str:
    return f"{Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"

def cart_line_items(lines: Iterable[OrderLine], currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe à partir des lignes de commande.
    - Si 'price_ref' est présent, utilise {"price": "<price_id>"} (prix catalogue Stripe).
    - Sinon, construit 'price_data' avec unit_amount (en centimes) et product_data.name.
    - Ignore les lignes à quantité/prix non valides.
    - SessionCreationError si aucune ligne valide n'est construite.
    """
    line_items: List[Dict[str, Any]] = []
    for line in lines:
        if line.quantity <= 0:
            continue
        if line.price_ref:
            line_items.append({
                "price": line.price_ref,
                "quantity": line.quantity,
                "adjustable_quantity": {"enabled": False},
            })
            continue
        unit_amount = to_cents(line.unit_price)
        if unit_amount <= 0:
            continue
        name = line.name or "Item"
        if line.variant:
            name = f"{name} ({line.variant})"
        line_items.append({
            "quantity": line.quantity,
            "price_data": {
                "currency": currency,
                "unit_amount": unit_amount,
                "product_data": {"name": name},
            },
        })
    if not line_items:
        raise SessionCreationError("No valid items in cart")
    return line_items

def donation_product_name(amount: Decimal, recurring: bool) -> str:
    label = "Monthly Donation" if recurring else "One-Time Donation"
    return f"{label} - ${format_amount(amount)}"

def donation_line_item(
    amount: Decimal,
    currency: str,
    metadata: Dict[str, str],
    price_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ligne unique d'un don:
    - récurrent: référence au Price mensuel créé au préalable (price_id);
    - ponctuel: price_data inline.
    """
    if price_id:
        return {"price": price_id, "quantity": 1}
    return {
        "quantity": 1,
        "price_data": {
            "currency": currency,
            "unit_amount": to_cents(amount),
            "product_data": {
                "name": donation_product_name(amount, recurring=False),
                "metadata": metadata,
            },
        },
    }
