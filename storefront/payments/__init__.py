"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe, line_items, métadonnées de corrélation et la passerelle à deux parcours.
"""

from .gateway import PaymentGateway, build_return_urls, is_allowed_return_url
from .line_items import cart_line_items, donation_line_item, to_cents
from .metadata import extract_correlation, extract_metadata, make_metadata
from .models import (
    CardInput,
    HostedRedirect,
    HostedSubmission,
    InlineResult,
    InlineStatus,
    InlineSubmission,
    PaymentAttempt,
    ReturnUrls,
)

__all__ = [
    # gateway
    "PaymentGateway",
    "build_return_urls",
    "is_allowed_return_url",
    # line items / metadata
    "cart_line_items",
    "donation_line_item",
    "to_cents",
    "make_metadata",
    "extract_metadata",
    "extract_correlation",
    # models
    "CardInput",
    "HostedRedirect",
    "HostedSubmission",
    "InlineResult",
    "InlineStatus",
    "InlineSubmission",
    "PaymentAttempt",
    "ReturnUrls",
]
