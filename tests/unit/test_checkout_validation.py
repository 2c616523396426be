from decimal import Decimal

import pytest

from storefront.checkout.models import BuyerInput, DonationSelection
from storefront.checkout.tiers import tier_description_for
from storefront.checkout.validation import (
    validate_cart_total,
    validate_contact,
    validate_donation,
    validate_payment_method,
    validate_shipping,
)
from storefront.ledger.models import PaymentMethod
from storefront.payments.models import CardInput


def test_contact_requires_names_and_valid_email():
    errors = validate_contact(BuyerInput(first_name=" ", email="not-an-email"))
    assert set(errors) == {"first_name", "last_name", "email"}
    assert errors["email"] == "Please enter a valid email"
    assert validate_contact(BuyerInput(first_name="Ada", last_name="L", email="ada@example.com")) == {}
    assert validate_contact(BuyerInput(first_name="Ada", last_name="L"))["email"] == "Email is required"

def test_shipping_fields_required():
    errors = validate_shipping(BuyerInput(country=""))
    assert set(errors) == {"address", "city", "zip_code", "country"}

@pytest.mark.parametrize("count,total,field_error", [
    (0, Decimal("0"), "Your cart is empty"),
    (1, Decimal("0.49"), "Minimum order amount is $0.50"),
])
def test_cart_total_rules(count, total, field_error):
    assert validate_cart_total(count, total) == {"cart": field_error}

def test_cart_total_at_minimum_is_valid():
    assert validate_cart_total(1, Decimal("0.50")) == {}

@pytest.mark.parametrize("amount,message", [
    (None, "Minimum donation is $1.00"),
    (Decimal("0.30"), "Minimum donation is $1.00"),
    (Decimal("50000.01"), "Maximum donation is $50,000.00"),
])
def test_donation_amount_bounds(amount, message):
    errors = validate_donation(DonationSelection(amount=amount), PaymentMethod.HOSTED, None)
    assert errors == {"amount": message}

def test_monthly_donation_needs_hosted_and_sign_in():
    errors = validate_donation(DonationSelection(amount=Decimal("10"), recurring=True), PaymentMethod.INLINE, None)
    assert set(errors) == {"payment_method", "recurring"}
    assert validate_donation(DonationSelection(amount=Decimal("10"), recurring=True), PaymentMethod.HOSTED, "u1") == {}

def test_inline_needs_card_handle():
    assert validate_payment_method(PaymentMethod.INLINE, None) == {"card": "Card details are required"}
    assert validate_payment_method(PaymentMethod.INLINE, CardInput(payment_method="pm_1")) == {}
    assert validate_payment_method(PaymentMethod.HOSTED, None) == {}

def test_tier_description_lookup():
    assert tier_description_for(Decimal("10.00")) == "1 free meal"
    assert tier_description_for(Decimal("12")) is None
    assert tier_description_for(None) is None
