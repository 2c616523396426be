"""
Module 'reconciliation': finalisation des enregistrements 'pending' après paiement.
"""

from .confirmation import (
    ConfirmationClient,
    ConfirmationOutcome,
    ConfirmationResult,
    StripeConfirmationClient,
)
from .service import ConfirmationReconciler

__all__ = [
    "ConfirmationClient",
    "ConfirmationOutcome",
    "ConfirmationResult",
    "StripeConfirmationClient",
    "ConfirmationReconciler",
]
