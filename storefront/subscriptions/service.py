"""
SubscriptionManager: dons mensuels de l'acheteur connecté (liste, annulation).
"""
import logging
from typing import List, Optional

import stripe

from storefront.errors import CancellationError, GatewayInitError, InvalidStateError, NotFound
from storefront.ledger.models import LedgerRecord, RecordFilter, RecordKind, RecordStatus, can_transition
from storefront.ledger.service import OrderLedger
from storefront.payments import stripe_client

logger = logging.getLogger(__name__)

# module storefront.subscriptions.service
class SubscriptionManager:
    def __init__(self, ledger: Optional[OrderLedger] = None, client=None):
        self.ledger = ledger or OrderLedger()
        self.client = client or stripe_client

    def list(self, buyer_id: str) -> List[LedgerRecord]:
        return self.ledger.list_by_buyer(buyer_id, RecordFilter(kind=RecordKind.DONATION, recurring=True))

    def cancel(self, record_id: str, buyer_id: str) -> LedgerRecord:
        """
        Annule l'abonnement Stripe puis passe l'enregistrement en 'cancelled'.
        - NotFound si le don n'existe pas ou n'appartient pas à l'acheteur;
        - InvalidStateError s'il n'est pas 'active' ou n'a pas d'abonnement Stripe;
        - CancellationError si Stripe refuse: l'enregistrement reste inchangé.
        """
        record = self.ledger.fetch(record_id, RecordKind.DONATION)
        if not buyer_id or record.buyer_id != buyer_id:
            raise NotFound(f"Record {record_id} not found")
        if not can_transition(record.status, RecordStatus.CANCELLED, record.recurring):
            raise InvalidStateError(f"Subscription is {record.status.value} and cannot be cancelled")
        if not record.subscription_reference:
            raise InvalidStateError("No processor subscription is attached to this donation")

        try:
            self.client.cancel_subscription(record.subscription_reference)
        except (GatewayInitError, stripe.StripeError) as e:
            logger.warning("subscription cancel failed id=%s sub=%s: %s", record_id, record.subscription_reference, e)
            raise CancellationError("Could not cancel the subscription, please try again") from e

        if not self.ledger.update_status(record_id, RecordStatus.CANCELLED, kind=RecordKind.DONATION):
            logger.warning("subscription %s cancelled at processor but ledger status already moved", record_id)
        return self.ledger.fetch(record_id, RecordKind.DONATION)
