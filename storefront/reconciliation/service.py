"""
ConfirmationReconciler: finalise un enregistrement resté 'pending' au retour du parcours hébergé
(ou au rechargement de la page après une authentification 3DS).
Idempotent: un enregistrement déjà réglé n'est jamais réécrit.
"""
import logging
from typing import Optional

from storefront.cart.store import CartStore
from storefront.errors import PersistenceError, ReconciliationError
from storefront.ledger.models import LedgerRecord, RecordKind, RecordStatus, confirmed_status
from storefront.ledger.service import OrderLedger
from .confirmation import ConfirmationClient, ConfirmationOutcome, StripeConfirmationClient

logger = logging.getLogger(__name__)

# module storefront.reconciliation.service
class ConfirmationReconciler:
    def __init__(self, ledger: Optional[OrderLedger] = None, confirmation: Optional[ConfirmationClient] = None):
        self.ledger = ledger or OrderLedger()
        self.confirmation = confirmation or StripeConfirmationClient()

    def reconcile(
        self,
        correlation_id: str,
        kind: Optional[RecordKind] = None,
        session_id: Optional[str] = None,
        cart: Optional[CartStore] = None,
    ) -> LedgerRecord:
        """
        1) relit l'enregistrement (NotFound remonte);
        2) déjà réglé => no-op;
        3) 'pending' => vérification externe puis transition paid/active ou failed.
        Une vérification injoignable laisse l'enregistrement 'pending' (journalisé).
        """
        record = self.ledger.fetch(correlation_id, kind)
        if record.is_settled:
            logger.info("reconcile: %s already %s, nothing to do", record.id, record.status.value)
            # retour de redirection après une notification hors bande plus rapide
            if session_id:
                self._clear_cart_if_paid(record, cart)
            return record

        try:
            result = self.confirmation.confirm(record, session_id)
        except ReconciliationError as e:
            logger.warning("reconcile: %s left pending: %s", record.id, e.message)
            return record

        if result.outcome == ConfirmationOutcome.PENDING:
            logger.info("reconcile: %s still pending at processor", record.id)
            return record

        try:
            if result.outcome == ConfirmationOutcome.CONFIRMED:
                self.ledger.update_status(
                    record.id,
                    confirmed_status(record.recurring),
                    result.processor_reference or session_id,
                    kind=record.kind,
                    subscription_reference=result.subscription_reference,
                )
            else:
                self.ledger.update_status(
                    record.id,
                    RecordStatus.FAILED,
                    result.processor_reference or session_id,
                    kind=record.kind,
                    failure_reason=result.failure_reason,
                )
            # relecture: un flux concurrent a pu gagner la course
            updated = self.ledger.fetch(record.id, record.kind)
        except PersistenceError:
            logger.exception("reconcile: could not record outcome for %s", record.id)
            return record

        self._clear_cart_if_paid(updated, cart)
        return updated

    @staticmethod
    def _clear_cart_if_paid(record: LedgerRecord, cart: Optional[CartStore]) -> None:
        if cart is not None and record.kind == RecordKind.ORDER and record.status == RecordStatus.PAID:
            cart.clear()
