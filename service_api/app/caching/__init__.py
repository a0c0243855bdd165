from .cache_store import RedisCacheStore
from .response_cache import (
    CACHE_KEY_PREFIX,
    DEFAULT_TTL,
    CacheAsideMiddleware,
    CacheRule,
    ResponseCache,
    cache_key_for,
)

__all__ = [
    "CACHE_KEY_PREFIX",
    "DEFAULT_TTL",
    "CacheAsideMiddleware",
    "CacheRule",
    "RedisCacheStore",
    "ResponseCache",
    "cache_key_for",
]
