"""
Passerelle de paiement: deux parcours exclusifs vers Stripe.
- inline: PaymentIntent créé puis confirmé avec le PaymentMethod saisi dans la page;
- hosted: session Stripe Checkout, le navigateur est redirigé puis revient via les URLs de retour.
Traduit les exceptions du SDK Stripe en erreurs métier (storefront.errors).
"""
import logging
import time
from decimal import Decimal
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import stripe

from storefront.config import (
    ALLOWED_RETURN_DOMAINS,
    BASE_URL,
    CHECKOUT_CANCEL_PATH,
    CHECKOUT_SESSION_TTL_SECONDS,
    CHECKOUT_SUCCESS_PATH,
    DONATION_CANCEL_PATH,
    DONATION_SUCCESS_PATH,
)
from storefront.errors import (
    CardError,
    GatewayInitError,
    IntentCreationError,
    SessionCreationError,
)
from storefront.ledger.models import RecordKind
from . import stripe_client
from .line_items import cart_line_items, donation_line_item, donation_product_name, to_cents
from .metadata import make_metadata
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

logger = logging.getLogger(__name__)

# statuts PaymentIntent qui attendent encore le navigateur (3DS) ou le réseau bancaire
_PENDING_INTENT_STATUSES = {"requires_action", "requires_confirmation", "processing"}

# module storefront.payments.gateway
def _stripe_message(exc: Exception, fallback: str) -> str:
    msg = getattr(exc, "user_message", None)
    return str(msg) if msg else fallback

def is_allowed_return_url(url: str) -> bool:
    """Vrai si l'hôte de l'URL appartient à ALLOWED_RETURN_DOMAINS (sous-domaines inclus)."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    for domain in ALLOWED_RETURN_DOMAINS:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False

def build_return_urls(kind: RecordKind, correlation_id: str, base_url: Optional[str] = None) -> ReturnUrls:
    """
    URLs de retour du parcours hosted, portant l'id de corrélation:
    - succès: {BASE_URL}{SUCCESS_PATH}?session_id={CHECKOUT_SESSION_ID}&order_id=<id>
    - annulation: {BASE_URL}{CANCEL_PATH}?canceled=true&order_id=<id>
    (donation_id et chemins dédiés pour un don)
    """
    base = (base_url or BASE_URL).rstrip("/")
    if kind == RecordKind.DONATION:
        success_path, cancel_path, param = DONATION_SUCCESS_PATH, DONATION_CANCEL_PATH, "donation_id"
    else:
        success_path, cancel_path, param = CHECKOUT_SUCCESS_PATH, CHECKOUT_CANCEL_PATH, "order_id"
    s_sep = "&" if "?" in success_path else "?"
    c_sep = "&" if "?" in cancel_path else "?"
    return ReturnUrls(
        success_url=f"{base}{success_path}{s_sep}session_id={{CHECKOUT_SESSION_ID}}&{param}={correlation_id}",
        cancel_url=f"{base}{cancel_path}{c_sep}canceled=true&{param}={correlation_id}",
    )

def _shipping_payload(attempt: PaymentAttempt) -> Optional[Dict[str, Any]]:
    if not attempt.shipping:
        return None
    return {
        "name": attempt.buyer.full_name,
        "phone": attempt.buyer.phone or None,
        "address": {
            "line1": attempt.shipping.address,
            "city": attempt.shipping.city,
            "postal_code": attempt.shipping.zip_code,
            "country": attempt.shipping.country,
        },
    }


class PaymentGateway:
    """
    Façade des deux stratégies de paiement. 'client' est le module stripe_client
    (remplaçable par un double en tests).
    """

    def __init__(self, client=None, clock=time.time):
        self.client = client or stripe_client
        self.clock = clock

    def submit(self, submission: Union[InlineSubmission, HostedSubmission]) -> Union[InlineResult, HostedRedirect]:
        if isinstance(submission, InlineSubmission):
            return self.submit_inline_payment(submission.attempt, submission.card)
        if isinstance(submission, HostedSubmission):
            return self.submit_hosted_checkout(submission.attempt, submission.return_urls)
        raise TypeError(f"Unsupported submission: {type(submission).__name__}")

    def _ensure_ready(self) -> None:
        try:
            self.client.require_stripe()
        except GatewayInitError:
            raise
        except Exception as e:
            logger.exception("Stripe initialisation failed")
            raise GatewayInitError("Payment service unavailable") from e

    def submit_inline_payment(self, attempt: PaymentAttempt, card: CardInput) -> InlineResult:
        """
        1) crée le PaymentIntent (clé d'idempotence = id de corrélation);
        2) le confirme avec le PaymentMethod fourni par Stripe.js.
        Erreurs: GatewayInitError, IntentCreationError, CardError (message Stripe remonté).
        """
        self._ensure_ready()
        try:
            intent = self.client.create_payment_intent(
                amount_cents=to_cents(attempt.amount),
                currency=attempt.currency,
                metadata=make_metadata(attempt),
                receipt_email=attempt.buyer.email or None,
                shipping=_shipping_payload(attempt),
                idempotency_key=f"pi-{attempt.correlation_id}",
            )
        except GatewayInitError:
            raise
        except stripe.StripeError as e:
            logger.warning("PaymentIntent creation failed for %s: %s", attempt.correlation_id, e)
            raise IntentCreationError(_stripe_message(e, "Failed to create payment intent")) from e

        intent_id = intent.get("id")
        client_secret = intent.get("client_secret")
        if not intent_id or not client_secret:
            raise IntentCreationError("No client secret received")

        try:
            confirmed = self.client.confirm_payment_intent(intent_id, payment_method=card.payment_method)
        except stripe.CardError as e:
            logger.info("Card declined for %s: %s", attempt.correlation_id, getattr(e, "code", None))
            message = getattr(e, "user_message", None) or str(e) or "Your card was declined"
            raise CardError(message, decline_code=getattr(e, "code", None)) from e
        except stripe.StripeError as e:
            logger.warning("PaymentIntent confirmation failed for %s: %s", attempt.correlation_id, e)
            raise IntentCreationError(_stripe_message(e, "Payment could not be confirmed")) from e

        status = confirmed.get("status") or ""
        reference = confirmed.get("id") or intent_id
        if status == "succeeded":
            return InlineResult(status=InlineStatus.SUCCEEDED, processor_reference=reference)
        if status in _PENDING_INTENT_STATUSES:
            return InlineResult(
                status=InlineStatus.REQUIRES_ACTION,
                processor_reference=reference,
                client_secret=confirmed.get("client_secret") or client_secret,
            )
        last_error = confirmed.get("last_payment_error") or {}
        return InlineResult(
            status=InlineStatus.FAILED,
            processor_reference=reference,
            failure_reason=last_error.get("message") or f"Payment {status or 'failed'}",
        )

    def submit_hosted_checkout(self, attempt: PaymentAttempt, return_urls: ReturnUrls) -> HostedRedirect:
        """
        Crée la session Checkout:
        - commande: une ligne par article (price_ref sinon price_data);
        - don ponctuel: une ligne price_data;
        - don mensuel: Price récurrent créé d'abord, session en mode 'subscription'.
        La session expire après CHECKOUT_SESSION_TTL_SECONDS.
        """
        self._ensure_ready()
        for url in (return_urls.success_url, return_urls.cancel_url):
            if not is_allowed_return_url(url):
                raise SessionCreationError("Invalid return URL domain")

        metadata = make_metadata(attempt)
        amount = Decimal(attempt.amount)
        mode = "payment"
        subscription_data = None
        try:
            if attempt.kind == RecordKind.ORDER:
                line_items = cart_line_items(attempt.lines, attempt.currency)
            elif attempt.recurring:
                price = self.client.create_price(
                    amount_cents=to_cents(amount),
                    currency=attempt.currency,
                    product_name=donation_product_name(amount, recurring=True),
                    metadata={"kind": attempt.kind.value, "correlation_id": attempt.correlation_id},
                )
                if not price.get("id"):
                    raise SessionCreationError("Could not create recurring price")
                line_items = [donation_line_item(amount, attempt.currency, metadata, price_id=price["id"])]
                mode = "subscription"
                subscription_data = {"metadata": metadata}
            else:
                line_items = [donation_line_item(amount, attempt.currency, metadata)]

            session = self.client.create_session(
                line_items=line_items,
                mode=mode,
                success_url=return_urls.success_url,
                cancel_url=return_urls.cancel_url,
                metadata=metadata,
                customer_email=attempt.buyer.email or None,
                expires_at=int(self.clock()) + CHECKOUT_SESSION_TTL_SECONDS,
                subscription_data=subscription_data,
                idempotency_key=f"cs-{attempt.correlation_id}",
            )
        except (GatewayInitError, SessionCreationError):
            raise
        except stripe.StripeError as e:
            logger.warning("Checkout session creation failed for %s: %s", attempt.correlation_id, e)
            raise SessionCreationError(_stripe_message(e, "Failed to create checkout session")) from e

        session_id = session.get("id")
        redirect_url = session.get("url")
        if not session_id or not redirect_url:
            raise SessionCreationError("No session ID received")
        logger.info("Checkout session %s created for %s", session_id, attempt.correlation_id)
        return HostedRedirect(session_id=session_id, redirect_url=redirect_url)
