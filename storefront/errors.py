"""
Taxonomie des erreurs du checkout.
- Toutes dérivent de CheckoutError (message lisible + code machine).
- Les handlers FastAPI (app_setup.exception_handlers) les traduisent en JSON.
- Rien ici n'est fatal au process: chaque erreur finit en message utilisateur
  ou en enregistrement 'pending' rejouable.
"""
from typing import Dict, Optional


class CheckoutError(Exception):
    code = "checkout_error"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message


class ValidationError(CheckoutError):
    """Erreurs de champs; bloque la soumission sans effet de bord."""
    code = "validation_error"

    def __init__(self, errors: Dict[str, str], message: str = "Please correct the highlighted fields"):
        super().__init__(message)
        self.errors = dict(errors)


class GatewayInitError(CheckoutError):
    code = "gateway_unavailable"


class IntentCreationError(CheckoutError):
    code = "intent_creation_failed"


class SessionCreationError(CheckoutError):
    code = "session_creation_failed"


class CardError(CheckoutError):
    """Carte refusée par le processeur; le message du processeur est conservé tel quel."""
    code = "card_error"

    def __init__(self, message: str, decline_code: Optional[str] = None):
        super().__init__(message)
        self.decline_code = decline_code


class PersistenceError(CheckoutError):
    code = "persistence_error"


class ReconciliationError(CheckoutError):
    code = "reconciliation_error"


class CancellationError(CheckoutError):
    code = "cancellation_failed"


class InvalidStateError(CheckoutError):
    code = "invalid_state"


class NotFound(CheckoutError):
    code = "not_found"


# Erreurs passerelle: survenues avant tout mouvement d'argent ou refus carte.
GATEWAY_ERRORS = (GatewayInitError, IntentCreationError, SessionCreationError, CardError)
