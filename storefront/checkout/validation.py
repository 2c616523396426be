"""
Validation métier du checkout.
Chaque fonction retourne une carte {champ: message}; vide = valide.
Aucun effet de bord: rien n'est écrit ni envoyé au processeur tant qu'il reste une erreur.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from storefront.config import MAX_DONATION_AMOUNT, MIN_DONATION_AMOUNT, MIN_ORDER_AMOUNT
from storefront.ledger.models import PaymentMethod
from storefront.payments.line_items import format_amount
from storefront.payments.models import CardInput
from .models import BuyerInput, DonationSelection

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# module storefront.checkout.validation
def validate_contact(buyer: BuyerInput) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not buyer.first_name.strip():
        errors["first_name"] = "First name is required"
    if not buyer.last_name.strip():
        errors["last_name"] = "Last name is required"
    email = buyer.email.strip()
    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email"
    return errors

def validate_shipping(buyer: BuyerInput) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not buyer.address.strip():
        errors["address"] = "Address is required"
    if not buyer.city.strip():
        errors["city"] = "City is required"
    if not buyer.zip_code.strip():
        errors["zip_code"] = "ZIP code is required"
    if not buyer.country.strip():
        errors["country"] = "Country is required"
    return errors

def validate_cart_total(count: int, total: Decimal) -> Dict[str, str]:
    if count <= 0:
        return {"cart": "Your cart is empty"}
    if Decimal(total) < MIN_ORDER_AMOUNT:
        return {"cart": f"Minimum order amount is ${format_amount(MIN_ORDER_AMOUNT)}"}
    return {}

def _as_amount(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None

def validate_donation(selection: DonationSelection, method: PaymentMethod, buyer_id: Optional[str]) -> Dict[str, str]:
    """
    - montant entre MIN_DONATION_AMOUNT et MAX_DONATION_AMOUNT;
    - don mensuel: parcours hébergé et acheteur connecté obligatoires.
    """
    errors: Dict[str, str] = {}
    amount = _as_amount(selection.amount)
    if amount is None or amount < MIN_DONATION_AMOUNT:
        errors["amount"] = f"Minimum donation is ${format_amount(MIN_DONATION_AMOUNT)}"
    elif amount > MAX_DONATION_AMOUNT:
        errors["amount"] = f"Maximum donation is ${format_amount(MAX_DONATION_AMOUNT)}"
    if selection.recurring:
        if method != PaymentMethod.HOSTED:
            errors["payment_method"] = "Monthly donations must use hosted checkout"
        if not buyer_id:
            errors["recurring"] = "Please sign in to set up a monthly donation"
    return errors

def validate_payment_method(method: PaymentMethod, card: Optional[CardInput]) -> Dict[str, str]:
    if method == PaymentMethod.INLINE and (card is None or not card.payment_method):
        return {"card": "Card details are required"}
    return {}
