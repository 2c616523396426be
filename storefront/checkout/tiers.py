"""Paliers de don proposés à l'interface, et leur description d'impact."""
from decimal import Decimal
from typing import List, NamedTuple, Optional

# module storefront.checkout.tiers
class DonationTier(NamedTuple):
    amount: Decimal
    label: str
    description: str


DONATION_TIERS: List[DonationTier] = [
    DonationTier(Decimal("10"), "$10", "1 free meal"),
    DonationTier(Decimal("50"), "$50", "5 educational and recreational books"),
    DonationTier(Decimal("100"), "$100", "900 pcs of educational stickers for suicide prevention"),
    DonationTier(Decimal("250"), "$250", "One case of essential oils for the aroma therapy program"),
    DonationTier(Decimal("500"), "$500", "Facilitate educational/recreational mental health events"),
    DonationTier(Decimal("1000"), "$1,000", "Art supplies for our art therapy program"),
    DonationTier(Decimal("2000"), "$2,000", "20 hours of free therapy for the community"),
    DonationTier(Decimal("5000"), "$5,000", "Dedicated mental health clinic in Saratoga Springs, Utah"),
]

def tier_description_for(amount: Optional[Decimal]) -> Optional[str]:
    """Description du palier dont le montant correspond exactement, None pour un montant libre."""
    if amount is None:
        return None
    for tier in DONATION_TIERS:
        if tier.amount == Decimal(amount):
            return tier.description
    return None
