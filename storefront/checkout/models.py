"""
Entrées/sorties du checkout.
Les champs de BuyerInput sont tous optionnels (chaînes vides par défaut): la validation
métier (validation.py) produit une carte d'erreurs par champ plutôt qu'une 422 pydantic.
"""
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel

from storefront.ledger.models import BuyerContact, RecordKind, ShippingAddress

# module storefront.checkout.models
class BuyerInput(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = "US"

    def contact(self) -> BuyerContact:
        return BuyerContact(
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            email=self.email.strip(),
            phone=self.phone.strip() or None,
        )

    def shipping(self) -> ShippingAddress:
        return ShippingAddress(
            address=self.address.strip(),
            city=self.city.strip(),
            zip_code=self.zip_code.strip(),
            country=self.country.strip().upper(),
        )


class DonationSelection(BaseModel):
    amount: Optional[Decimal] = None
    recurring: bool = False
    tier_description: Optional[str] = None


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    REQUIRES_ACTION = "requires_action"
    REDIRECT = "redirect"


class CheckoutOutcome(BaseModel):
    status: OutcomeStatus
    record_id: str
    kind: RecordKind
    processor_reference: Optional[str] = None
    redirect_url: Optional[str] = None
    client_secret: Optional[str] = None
    message: str = ""
