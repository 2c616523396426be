"""
Stockage clé-valeur durable du panier (capacité injectée: get/set/remove).
- MemoryStorage: dict local (tests, mono-process).
- RedisStorage: production, avec TTL optionnel.
Les erreurs remontent à l'appelant; c'est CartStore qui décide de les absorber.
"""
from typing import Dict, Optional, Protocol
import redis

# module storefront.cart.storage
class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class RedisStorage:
    def __init__(self, client: redis.Redis, ttl_seconds: Optional[int] = None):
        self._client = client
        self._ttl = ttl_seconds

    def get(self, key: str) -> Optional[str]:
        value = self._client.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        if self._ttl:
            self._client.set(key, value, ex=self._ttl)
        else:
            self._client.set(key, value)

    def remove(self, key: str) -> None:
        self._client.delete(key)
