from typing import Optional
import redis
from storefront.config import CART_REDIS_URL

_redis: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    """Client Redis partagé pour le stockage durable des paniers."""
    global _redis
    if _redis is None:
        _redis = redis.from_url(CART_REDIS_URL, encoding="utf-8", decode_responses=True)
    return _redis
