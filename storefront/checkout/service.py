"""
CheckoutOrchestrator: pipeline de soumission d'un achat (panier) ou d'un don.

Ordre garanti:
  1) validation (aucun effet de bord si erreur);
  2) création de l'enregistrement 'pending' dans le registre;
  3) soumission au processeur (inline OU hosted, jamais les deux);
  4) mise à jour du statut (inline) / redirection (hosted);
  5) vidage du panier une fois le paiement confirmé.
Une nouvelle tentative après échec crée toujours un nouvel enregistrement.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Union

from storefront.cart.store import CartStore
from storefront.config import DEFAULT_CURRENCY
from storefront.errors import CardError, GATEWAY_ERRORS, PersistenceError, ValidationError
from storefront.ledger.models import (
    LedgerRecord,
    OrderLine,
    PaymentMethod,
    RecordKind,
    RecordStatus,
    confirmed_status,
)
from storefront.ledger.service import OrderLedger
from storefront.payments.gateway import PaymentGateway, build_return_urls
from storefront.payments.models import (
    CardInput,
    HostedSubmission,
    InlineStatus,
    InlineSubmission,
    PaymentAttempt,
)
from .models import BuyerInput, CheckoutOutcome, DonationSelection, OutcomeStatus
from .tiers import tier_description_for
from .validation import (
    validate_cart_total,
    validate_contact,
    validate_donation,
    validate_payment_method,
    validate_shipping,
)

logger = logging.getLogger(__name__)

Selection = Union[CartStore, DonationSelection]

# module storefront.checkout.service
def _order_lines(cart: CartStore) -> List[OrderLine]:
    return [
        OrderLine(
            product_id=item.product_id,
            variant=item.variant,
            name=item.name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            price_ref=item.price_ref,
        )
        for item in cart.items
    ]


class CheckoutOrchestrator:
    def __init__(self, ledger: Optional[OrderLedger] = None, gateway: Optional[PaymentGateway] = None, return_urls=build_return_urls):
        self.ledger = ledger or OrderLedger()
        self.gateway = gateway or PaymentGateway()
        self.return_urls = return_urls

    def validate(
        self,
        buyer: BuyerInput,
        selection: Selection,
        payment_method: PaymentMethod,
        card: Optional[CardInput] = None,
        buyer_id: Optional[str] = None,
    ) -> None:
        """ValidationError portant la carte {champ: message} si la soumission est invalide."""
        errors = validate_contact(buyer)
        if isinstance(selection, CartStore):
            errors.update(validate_shipping(buyer))
            errors.update(validate_cart_total(selection.count, selection.total))
        else:
            errors.update(validate_donation(selection, payment_method, buyer_id))
        errors.update(validate_payment_method(payment_method, card))
        if errors:
            raise ValidationError(errors)

    def submit(
        self,
        buyer: BuyerInput,
        selection: Selection,
        payment_method: Union[PaymentMethod, str],
        *,
        card: Optional[CardInput] = None,
        buyer_id: Optional[str] = None,
    ) -> CheckoutOutcome:
        """
        Soumet un achat (selection = CartStore) ou un don (selection = DonationSelection).
        Erreurs: ValidationError, PersistenceError (rien n'a été débité, panier intact),
        GatewayInitError / IntentCreationError / SessionCreationError / CardError
        (enregistrement marqué 'failed').
        """
        if not isinstance(selection, (CartStore, DonationSelection)):
            raise TypeError(f"Unsupported selection: {type(selection).__name__}")
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": "Please choose a payment method"})
        self.validate(buyer, selection, method, card=card, buyer_id=buyer_id)

        record = self._build_record(buyer, selection, method, buyer_id)
        record_id = self.ledger.create(record)

        attempt = PaymentAttempt(
            correlation_id=record_id,
            kind=record.kind,
            amount=record.amount,
            currency=record.currency,
            buyer=record.buyer,
            buyer_id=buyer_id,
            lines=record.items,
            shipping=record.shipping,
            recurring=record.recurring,
            description=record.tier_description,
        )
        cart = selection if isinstance(selection, CartStore) else None
        if method == PaymentMethod.INLINE:
            return self._submit_inline(attempt, card, cart)
        return self._submit_hosted(attempt)

    def _build_record(
        self,
        buyer: BuyerInput,
        selection: Selection,
        method: PaymentMethod,
        buyer_id: Optional[str],
    ) -> LedgerRecord:
        if isinstance(selection, CartStore):
            # instantané du panier: les éditions concurrentes n'affectent pas cette tentative
            return LedgerRecord(
                kind=RecordKind.ORDER,
                buyer_id=buyer_id,
                payment_method=method,
                currency=DEFAULT_CURRENCY,
                amount=selection.total.quantize(Decimal("0.01")),
                items=_order_lines(selection),
                buyer=buyer.contact(),
                shipping=buyer.shipping(),
            )
        amount = Decimal(str(selection.amount)).quantize(Decimal("0.01"))
        return LedgerRecord(
            kind=RecordKind.DONATION,
            buyer_id=buyer_id,
            payment_method=method,
            currency=DEFAULT_CURRENCY,
            amount=amount,
            buyer=buyer.contact(),
            recurring=selection.recurring,
            tier_description=selection.tier_description or tier_description_for(amount),
        )

    def _mark_failed(self, attempt: PaymentAttempt, reason: str, reference: Optional[str] = None) -> None:
        # l'erreur passerelle reste celle remontée à l'utilisateur
        try:
            self.ledger.update_status(
                attempt.correlation_id, RecordStatus.FAILED, reference, kind=attempt.kind, failure_reason=reason
            )
        except PersistenceError:
            logger.exception("checkout: could not mark %s as failed", attempt.correlation_id)

    def _attach_reference(self, attempt: PaymentAttempt, reference: str) -> None:
        # permet à la réconciliation de retrouver la session ou l'intent sans paramètre de retour
        try:
            self.ledger.attach_reference(attempt.correlation_id, reference, kind=attempt.kind)
        except PersistenceError:
            logger.exception("checkout: could not attach %s to %s", reference, attempt.correlation_id)

    def _submit_inline(self, attempt: PaymentAttempt, card: CardInput, cart: Optional[CartStore]) -> CheckoutOutcome:
        try:
            result = self.gateway.submit(InlineSubmission(attempt=attempt, card=card))
        except GATEWAY_ERRORS as e:
            self._mark_failed(attempt, e.message)
            raise

        if result.status == InlineStatus.SUCCEEDED:
            try:
                self.ledger.update_status(
                    attempt.correlation_id,
                    confirmed_status(attempt.recurring),
                    result.processor_reference,
                    kind=attempt.kind,
                )
            except PersistenceError:
                # paiement encaissé: la réconciliation retrouvera l'intent par ses métadonnées
                logger.exception("checkout: payment %s succeeded but ledger update failed", attempt.correlation_id)
            if cart is not None:
                cart.clear()
            return CheckoutOutcome(
                status=OutcomeStatus.SUCCEEDED,
                record_id=attempt.correlation_id,
                kind=attempt.kind,
                processor_reference=result.processor_reference,
                message="Payment successful",
            )

        if result.status == InlineStatus.REQUIRES_ACTION:
            logger.info("checkout: %s requires additional authentication", attempt.correlation_id)
            if result.processor_reference:
                self._attach_reference(attempt, result.processor_reference)
            return CheckoutOutcome(
                status=OutcomeStatus.REQUIRES_ACTION,
                record_id=attempt.correlation_id,
                kind=attempt.kind,
                processor_reference=result.processor_reference,
                client_secret=result.client_secret,
                message="Additional authentication required",
            )

        reason = result.failure_reason or "Payment failed"
        self._mark_failed(attempt, reason, result.processor_reference)
        raise CardError(reason)

    def _submit_hosted(self, attempt: PaymentAttempt) -> CheckoutOutcome:
        urls = self.return_urls(attempt.kind, attempt.correlation_id)
        try:
            redirect = self.gateway.submit(HostedSubmission(attempt=attempt, return_urls=urls))
        except GATEWAY_ERRORS as e:
            self._mark_failed(attempt, e.message)
            raise

        self._attach_reference(attempt, redirect.session_id)
        return CheckoutOutcome(
            status=OutcomeStatus.REDIRECT,
            record_id=attempt.correlation_id,
            kind=attempt.kind,
            processor_reference=redirect.session_id,
            redirect_url=redirect.redirect_url,
            message="Redirecting to secure checkout",
        )
