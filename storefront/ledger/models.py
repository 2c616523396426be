"""
Modèles du registre (commandes et dons) et machine à états.

Transitions autorisées:
- ponctuel:  pending -> paid | failed
- récurrent: pending -> active | failed, active -> cancelled | failed
Terminaux: paid, failed, cancelled. 'active' reste ouvert jusqu'à annulation.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field

# module storefront.ledger.models
class RecordKind(str, Enum):
    ORDER = "order"
    DONATION = "donation"


class RecordStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    ACTIVE = "active"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    HOSTED = "hosted-redirect"
    INLINE = "inline-card"


# statut cible -> statuts sources admis
_SOURCES: Dict[RecordStatus, FrozenSet[RecordStatus]] = {
    RecordStatus.PAID: frozenset({RecordStatus.PENDING}),
    RecordStatus.ACTIVE: frozenset({RecordStatus.PENDING}),
    RecordStatus.FAILED: frozenset({RecordStatus.PENDING, RecordStatus.ACTIVE}),
    RecordStatus.CANCELLED: frozenset({RecordStatus.ACTIVE}),
}

# 'paid' est réservé aux ponctuels, 'active'/'cancelled' aux récurrents
_RECURRING_ONLY: Dict[RecordStatus, bool] = {
    RecordStatus.PAID: False,
    RecordStatus.ACTIVE: True,
    RecordStatus.CANCELLED: True,
}


def allowed_sources(target: RecordStatus) -> FrozenSet[RecordStatus]:
    return _SOURCES.get(RecordStatus(target), frozenset())


def recurring_constraint(target: RecordStatus) -> Optional[bool]:
    """True/False si la cible n'existe que pour les récurrents/ponctuels, None sinon."""
    return _RECURRING_ONLY.get(RecordStatus(target))


def can_transition(current: RecordStatus, target: RecordStatus, recurring: bool) -> bool:
    if RecordStatus(current) not in allowed_sources(target):
        return False
    constraint = recurring_constraint(target)
    return constraint is None or constraint == bool(recurring)


def confirmed_status(recurring: bool) -> RecordStatus:
    return RecordStatus.ACTIVE if recurring else RecordStatus.PAID


class BuyerContact(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ShippingAddress(BaseModel):
    address: str = ""
    city: str = ""
    zip_code: str = ""
    country: str = "US"


class OrderLine(BaseModel):
    product_id: str
    variant: str = ""
    name: str
    unit_price: Decimal
    quantity: int = Field(ge=1)
    price_ref: Optional[str] = None


class LedgerRecord(BaseModel):
    id: Optional[str] = None
    kind: RecordKind
    buyer_id: Optional[str] = None
    status: RecordStatus = RecordStatus.PENDING
    payment_method: PaymentMethod
    currency: str = "usd"
    amount: Decimal
    items: List[OrderLine] = Field(default_factory=list)
    buyer: BuyerContact = Field(default_factory=BuyerContact)
    shipping: Optional[ShippingAddress] = None
    recurring: bool = False
    tier_description: Optional[str] = None
    processor_reference: Optional[str] = None
    subscription_reference: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        """Tout sauf 'pending': la réconciliation n'a plus rien à faire."""
        return self.status != RecordStatus.PENDING


class RecordFilter(BaseModel):
    kind: Optional[RecordKind] = None
    recurring: Optional[bool] = None
    statuses: Optional[List[RecordStatus]] = None
    limit: int = 50
