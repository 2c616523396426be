"""
Module 'cart': panier local persistant (modèles, stockage clé-valeur, store observable).
"""

from .models import CartItem, CartKey
from .storage import KeyValueStorage, MemoryStorage, RedisStorage
from .store import CartStore

__all__ = [
    "CartItem",
    "CartKey",
    "KeyValueStorage",
    "MemoryStorage",
    "RedisStorage",
    "CartStore",
]
