"""
Shared pytest fixtures: a controllable clock and in-memory Redis doubles.
"""

import fnmatch
from typing import Dict, Optional, Tuple

import pytest
import redis.exceptions


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """The subset of ``redis.asyncio.Redis`` the cache store uses."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self.calls = []
        self.closed = False

    def _live(self, key: str) -> Optional[bytes]:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.clock():
            del self.data[key]
            return None
        return value

    async def get(self, key):
        self.calls.append(("get", key))
        return self._live(key)

    async def setex(self, key, ttl, value):
        self.calls.append(("setex", key, ttl))
        if isinstance(value, str):
            value = value.encode("utf-8")
        self.data[key] = (value, self.clock() + ttl)
        return True

    async def delete(self, *keys):
        self.calls.append(("delete",) + keys)
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                removed += 1
            self.data.pop(key, None)
        return removed

    async def scan_iter(self, match=None, count=None):
        self.calls.append(("scan", match))
        for key in list(self.data):
            if self._live(key) is not None and (match is None or fnmatch.fnmatchcase(key, match)):
                yield key.encode("utf-8")

    async def keys(self, pattern="*"):
        raise AssertionError("KEYS must not be used")

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True

    def live_keys(self):
        return sorted(key for key in list(self.data) if self._live(key) is not None)


class FailingRedis:
    """Every operation fails as if the server were unreachable."""

    def __getattr__(self, name):
        async def fail(*args, **kwargs):
            raise redis.exceptions.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
        return fail

    def scan_iter(self, match=None, count=None):
        raise redis.exceptions.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def aclose(self):
        return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    return FakeRedis(clock)


@pytest.fixture
def failing_redis():
    return FailingRedis()
