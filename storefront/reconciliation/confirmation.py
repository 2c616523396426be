"""
Vérification de confirmation (seconde source de vérité, indépendante des webhooks).
StripeConfirmationClient relit la session Checkout ou le PaymentIntent côté Stripe
et contrôle que ses métadonnées pointent bien vers l'enregistrement du registre.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol

import stripe
from pydantic import BaseModel

from storefront.errors import GatewayInitError, ReconciliationError
from storefront.ledger.models import LedgerRecord
from storefront.payments import stripe_client
from storefront.payments.metadata import extract_correlation

logger = logging.getLogger(__name__)

# module storefront.reconciliation.confirmation
class ConfirmationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"
    PENDING = "pending"


class ConfirmationResult(BaseModel):
    outcome: ConfirmationOutcome
    processor_reference: Optional[str] = None
    subscription_reference: Optional[str] = None
    failure_reason: Optional[str] = None


class ConfirmationClient(Protocol):
    def confirm(self, record: LedgerRecord, session_id: Optional[str] = None) -> ConfirmationResult:
        ...


def _ref_id(value: Any) -> Optional[str]:
    # Stripe renvoie un id ou l'objet développé selon 'expand'
    if isinstance(value, dict):
        return value.get("id")
    return value or None


class StripeConfirmationClient:
    def __init__(self, client=None):
        self.client = client or stripe_client

    def confirm(self, record: LedgerRecord, session_id: Optional[str] = None) -> ConfirmationResult:
        """
        - session Checkout (cs_...): complete + paid/no_payment_required => confirmé,
          expired => échec, sinon en attente;
        - PaymentIntent (pi_...): succeeded => confirmé, canceled/requires_payment_method => échec;
        - sans référence (ponctuel): PaymentIntent retrouvé par metadata.correlation_id.
        ReconciliationError si Stripe est injoignable ou si la référence ne correspond pas.
        """
        reference = session_id or record.processor_reference
        if not reference and record.recurring:
            return ConfirmationResult(outcome=ConfirmationOutcome.PENDING)
        try:
            if not reference:
                # référence jamais mémorisée (écriture registre perdue): recherche par métadonnées
                obj = self._find_intent(record)
                if obj is None:
                    return ConfirmationResult(outcome=ConfirmationOutcome.PENDING)
            elif reference.startswith("pi_"):
                obj = self.client.retrieve_payment_intent(reference)
            else:
                obj = self.client.get_session(reference)
        except (GatewayInitError, stripe.StripeError) as e:
            logger.warning("confirmation lookup failed for %s (%s): %s", record.id, reference, e)
            raise ReconciliationError("Could not verify payment status") from e

        self._check_correlation(record, obj)
        if not reference or reference.startswith("pi_") or obj.get("object") == "payment_intent":
            return self._from_intent(obj)
        return self._from_session(obj)

    def _find_intent(self, record: LedgerRecord) -> Optional[Dict[str, Any]]:
        intents = [i for i in self.client.search_payment_intents(record.id) if i.get("id")]
        if not intents:
            logger.info("confirmation: no payment intent found for %s", record.id)
            return None
        # un paiement réussi l'emporte sur les tentatives abandonnées
        intents.sort(key=lambda i: i.get("status") != "succeeded")
        logger.info("confirmation: %s matched payment intent %s", record.id, intents[0]["id"])
        return intents[0]

    @staticmethod
    def _check_correlation(record: LedgerRecord, obj: Dict[str, Any]) -> None:
        correlation_id, kind = extract_correlation(obj)
        if correlation_id != record.id or (kind and kind != record.kind.value):
            raise ReconciliationError("Payment reference does not match this record")

    @staticmethod
    def _from_session(session: Dict[str, Any]) -> ConfirmationResult:
        status = session.get("status") or ""
        payment_status = session.get("payment_status") or ""
        if status == "complete" and payment_status in ("paid", "no_payment_required"):
            return ConfirmationResult(
                outcome=ConfirmationOutcome.CONFIRMED,
                processor_reference=session.get("id"),
                subscription_reference=_ref_id(session.get("subscription")),
            )
        if status == "expired":
            return ConfirmationResult(
                outcome=ConfirmationOutcome.FAILED,
                processor_reference=session.get("id"),
                failure_reason="Checkout session expired",
            )
        return ConfirmationResult(outcome=ConfirmationOutcome.PENDING, processor_reference=session.get("id"))

    @staticmethod
    def _from_intent(intent: Dict[str, Any]) -> ConfirmationResult:
        status = intent.get("status") or ""
        if status == "succeeded":
            return ConfirmationResult(outcome=ConfirmationOutcome.CONFIRMED, processor_reference=intent.get("id"))
        if status in ("canceled", "requires_payment_method"):
            last_error = intent.get("last_payment_error") or {}
            return ConfirmationResult(
                outcome=ConfirmationOutcome.FAILED,
                processor_reference=intent.get("id"),
                failure_reason=last_error.get("message") or f"Payment {status}",
            )
        return ConfirmationResult(outcome=ConfirmationOutcome.PENDING, processor_reference=intent.get("id"))
