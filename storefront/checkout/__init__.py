"""
Module 'checkout': validation et orchestration de la soumission (achat ou don).
"""

from .models import BuyerInput, CheckoutOutcome, DonationSelection, OutcomeStatus
from .service import CheckoutOrchestrator
from .tiers import DONATION_TIERS, tier_description_for

__all__ = [
    "BuyerInput",
    "CheckoutOutcome",
    "DonationSelection",
    "OutcomeStatus",
    "CheckoutOrchestrator",
    "DONATION_TIERS",
    "tier_description_for",
]
