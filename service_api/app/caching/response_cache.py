"""
Cache-aside layer for idempotent API reads.

A request flows MISS -> COMPUTE -> STORE -> RESPOND, or HIT -> RESPOND.
The cache is purely an optimization: every store failure is logged and
ignored so responses are never blocked or altered by it.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .cache_store import RedisCacheStore


CACHE_KEY_PREFIX = "api:"
DEFAULT_TTL = 3600


def cache_key_for(path: str, query: str = "") -> str:
    """Key for a request: ``api:`` + path + raw query string."""
    if query:
        return f"{CACHE_KEY_PREFIX}{path}?{query}"
    return f"{CACHE_KEY_PREFIX}{path}"


@dataclass(frozen=True)
class CacheRule:
    """Cache GET responses under ``prefix`` for ``ttl`` seconds."""

    prefix: str
    ttl: int = DEFAULT_TTL

    def matches(self, path: str) -> bool:
        base = self.prefix.rstrip("/")
        return path == base or path.startswith(base + "/")


class ResponseCache:
    """Fail-open lookup/store/invalidate operations over a cache store."""

    def __init__(
        self,
        store: RedisCacheStore,
        default_ttl: int = DEFAULT_TTL,
        *,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.default_ttl = default_ttl
        self.metrics = metrics
        self.logger = get_logger("api.response_cache")

    def _absorb(self, operation: str, exc: Exception, **context) -> None:
        self.logger.warning(
            "Cache store unavailable, continuing without cache",
            operation=operation,
            error=str(exc),
            **context
        )
        if self.metrics:
            self.metrics.increment_counter("cache_errors_total", operation=operation)

    async def lookup(self, key: str) -> Optional[bytes]:
        """Return the cached body for ``key`` or None on miss or failure."""
        try:
            return await self.store.get(key)
        except Exception as exc:
            self._absorb("lookup", exc, key=key)
            return None

    async def store_body(self, key: str, body: bytes, ttl: Optional[int] = None) -> bool:
        """Write ``body`` under ``key``; returns False if the write failed."""
        expires = ttl if ttl is not None else self.default_ttl
        try:
            await self.store.set(key, body, expires)
        except Exception as exc:
            self._absorb("store", exc, key=key)
            return False
        self.logger.debug("Cached response", key=key, ttl=expires)
        return True

    async def invalidate(self, pattern: str) -> int:
        """Delete every key matching the glob ``pattern``.

        Uses SCAN, so cost grows with the total keyspace, not the match
        count. Prefer ``invalidate_paths`` when the keys are known.
        """
        try:
            keys = await self.store.scan(pattern)
            deleted = await self.store.delete(*keys) if keys else 0
        except Exception as exc:
            self._absorb("invalidate", exc, pattern=pattern)
            return 0
        if deleted:
            self.logger.info("Invalidated cache pattern", pattern=pattern, keys_count=deleted)
        return deleted

    async def invalidate_paths(self, paths: Iterable[str]) -> int:
        """Delete the exact keys for ``paths`` (each may carry a query string)."""
        keys = []
        for path in paths:
            route, _, query = path.partition("?")
            keys.append(cache_key_for(route, query))
        if not keys:
            return 0
        try:
            deleted = await self.store.delete(*keys)
        except Exception as exc:
            self._absorb("invalidate", exc, keys=keys)
            return 0
        return deleted


RequestGate = Callable[[Request], Awaitable[bool]]


class CacheAsideMiddleware(BaseHTTPMiddleware):
    """Serve matching GET requests from the response cache."""

    def __init__(
        self,
        app,
        cache: ResponseCache,
        rules: Sequence[CacheRule],
        gate: Optional[RequestGate] = None,
    ):
        super().__init__(app)
        self.cache = cache
        self.rules = list(rules)
        self.gate = gate

    def _match(self, path: str) -> Optional[CacheRule]:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def _count(self, metric: str, rule: CacheRule) -> None:
        if self.cache.metrics:
            self.cache.metrics.increment_counter(metric, route=rule.prefix)

    async def dispatch(self, request: Request, call_next):
        if request.method != "GET":
            return await call_next(request)

        rule = self._match(request.url.path)
        if rule is None:
            return await call_next(request)

        # Only callers the route would accept may read or seed the cache
        if self.gate is not None and not await self.gate(request):
            return await call_next(request)

        key = cache_key_for(request.url.path, request.url.query)
        cached = await self.cache.lookup(key)
        if cached is not None:
            self._count("cache_hits_total", rule)
            return Response(
                content=cached,
                media_type="application/json",
                headers={"X-Cache": "HIT"},
            )

        self._count("cache_misses_total", rule)
        response = await call_next(request)

        content_type = response.headers.get("content-type", "")
        if response.status_code != 200 or not content_type.startswith("application/json"):
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        await self.cache.store_body(key, body, rule.ttl)

        replay = Response(
            content=body,
            status_code=response.status_code,
            background=getattr(response, "background", None),
        )
        replay.raw_headers = list(response.raw_headers)
        replay.headers["X-Cache"] = "MISS"
        return replay
