"""
Objets transitoires d'une soumission de paiement (jamais persistés).
- PaymentAttempt: paramètres d'une tentative, corrélés à l'id du registre.
- InlineSubmission | HostedSubmission: variante étiquetée (champ 'method'),
  les deux parcours ne peuvent pas être mélangés.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from storefront.ledger.models import BuyerContact, OrderLine, RecordKind, ShippingAddress

# module storefront.payments.models
class PaymentAttempt(BaseModel):
    correlation_id: str
    kind: RecordKind
    amount: Decimal
    currency: str = "usd"
    buyer: BuyerContact
    buyer_id: Optional[str] = None
    lines: List[OrderLine] = Field(default_factory=list)
    shipping: Optional[ShippingAddress] = None
    recurring: bool = False
    description: Optional[str] = None


class CardInput(BaseModel):
    """Poignée de saisie carte: id du PaymentMethod créé par Stripe.js côté navigateur."""
    payment_method: str = Field(min_length=1)


class ReturnUrls(BaseModel):
    success_url: str
    cancel_url: str


class InlineSubmission(BaseModel):
    method: Literal["inline"] = "inline"
    attempt: PaymentAttempt
    card: CardInput


class HostedSubmission(BaseModel):
    method: Literal["hosted"] = "hosted"
    attempt: PaymentAttempt
    return_urls: ReturnUrls


class InlineStatus(str, Enum):
    SUCCEEDED = "succeeded"
    REQUIRES_ACTION = "requires_action"
    FAILED = "failed"


class InlineResult(BaseModel):
    status: InlineStatus
    processor_reference: Optional[str] = None
    client_secret: Optional[str] = None
    failure_reason: Optional[str] = None


class HostedRedirect(BaseModel):
    session_id: str
    redirect_url: str
