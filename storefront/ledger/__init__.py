"""
Module 'ledger': registre durable des commandes et dons (machine à états + accès Supabase).
"""

from .models import (
    BuyerContact,
    LedgerRecord,
    OrderLine,
    PaymentMethod,
    RecordFilter,
    RecordKind,
    RecordStatus,
    ShippingAddress,
    allowed_sources,
    can_transition,
    confirmed_status,
)
from .service import OrderLedger

__all__ = [
    "BuyerContact",
    "LedgerRecord",
    "OrderLine",
    "PaymentMethod",
    "RecordFilter",
    "RecordKind",
    "RecordStatus",
    "ShippingAddress",
    "allowed_sources",
    "can_transition",
    "confirmed_status",
    "OrderLedger",
]
