from .service import SubscriptionManager

__all__ = ["SubscriptionManager"]
