"""
Fixtures for client SDK tests.
"""

import httpx
import pytest
import pytest_asyncio

from service_client.app.http_client import ApiClient
from service_client.app.navigation import Navigator
from service_client.app.storage import MemoryStorage


class Recorder:
    """MockTransport handler that records requests and replays a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, response):
        """``response`` is an httpx.Response, an exception, or a callable(request)."""
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"success": False, "message": "Route not found"})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def navigator():
    return Navigator("/inventory")


@pytest.fixture
def recorder():
    return Recorder()


@pytest_asyncio.fixture
async def api_client(storage, navigator, recorder):
    client = ApiClient(
        "http://api.test",
        storage,
        navigator,
        timeout=5.0,
        transport=httpx.MockTransport(recorder),
    )
    yield client
    await client.close()
