"""
HTTP client wrapper for the Sathira Sweet API.

Every call goes through ``ApiClient.request``, which attaches the stored
session token, applies a fixed timeout with no retries, and turns every
failure into one of the classified errors in ``service_client.app.errors``.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.errors import SESSION_EXPIRED_MESSAGE
from .errors import (
    GENERIC_MESSAGE,
    AuthenticationError,
    ConnectivityError,
    RequestTimeoutError,
    ServerError,
    SessionExpiredError,
    ValidationError,
)
from .navigation import Navigator, SESSION_EXPIRED_PATH
from .storage import ClientStorage, REDIRECT_KEY, TOKEN_KEY


DEFAULT_TIMEOUT = 15.0

SessionExpiredListener = Callable[[], None]


class ApiClient:
    """Async client bound to one API base URL, storage and navigator."""

    def __init__(
        self,
        base_url: str,
        storage: ClientStorage,
        navigator: Navigator,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.storage = storage
        self.navigator = navigator
        self.timeout = timeout
        self.logger = get_logger("client.http")
        self.default_headers: Dict[str, str] = {"Accept": "application/json"}
        self._session_expired_listeners: List[SessionExpiredListener] = []

        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport or httpx.AsyncHTTPTransport(retries=0),
            event_hooks={"request": [self._attach_token]},
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def add_session_expired_listener(self, listener: SessionExpiredListener) -> None:
        self._session_expired_listeners.append(listener)

    def set_auth_token(self, token: Optional[str]) -> None:
        """Install ``token`` for later requests, or remove it when None."""
        if token:
            self.default_headers["Authorization"] = f"Bearer {token}"
            self.storage.set(TOKEN_KEY, token)
        else:
            self.default_headers.pop("Authorization", None)
            self.storage.remove(TOKEN_KEY)

    async def _attach_token(self, request: httpx.Request) -> None:
        # Storage is the source of truth for every outgoing request
        token = self.storage.get(TOKEN_KEY)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        elif "Authorization" in request.headers:
            del request.headers["Authorization"]

    async def request(self, method: str, path: str, body: Any = None, **config) -> Any:
        """Send a request and return the parsed payload.

        JSON bodies are decoded; anything else (PDF downloads) is returned
        as raw bytes. Raises an ``ApiError`` subclass on failure.
        """
        headers = {**self.default_headers, **(config.pop("headers", None) or {})}
        if body is not None:
            config["json"] = body

        try:
            response = await self._client.request(method, path, headers=headers, **config)
        except httpx.TimeoutException as exc:
            self.logger.warning("Request timed out", method=method, path=path, error=str(exc))
            raise RequestTimeoutError() from exc
        except httpx.TransportError as exc:
            self.logger.warning("No response from server", method=method, path=path, error=str(exc))
            raise ConnectivityError() from exc

        if response.is_success:
            return self._parse(response)
        raise self._classify(response)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **config) -> Any:
        return await self.request("GET", path, params=params, **config)

    async def post(self, path: str, body: Any = None, **config) -> Any:
        return await self.request("POST", path, body, **config)

    async def put(self, path: str, body: Any = None, **config) -> Any:
        return await self.request("PUT", path, body, **config)

    async def patch(self, path: str, body: Any = None, **config) -> Any:
        return await self.request("PATCH", path, body, **config)

    async def delete(self, path: str, **config) -> Any:
        return await self.request("DELETE", path, **config)

    @staticmethod
    def _is_json(response: httpx.Response) -> bool:
        return "json" in response.headers.get("content-type", "")

    def _parse(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        if self._is_json(response):
            return response.json()
        return response.content

    def _error_payload(self, response: httpx.Response) -> Any:
        if not self._is_json(response):
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _classify(self, response: httpx.Response) -> Exception:
        payload = self._error_payload(response)
        message = payload.get("message") if isinstance(payload, dict) else None
        status = response.status_code

        if status == 401:
            if message == SESSION_EXPIRED_MESSAGE:
                self._expire_session()
                return SessionExpiredError(status, payload)
            return AuthenticationError(message or GENERIC_MESSAGE, status, payload, message)

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if isinstance(errors, list) and errors:
            return ValidationError(message or GENERIC_MESSAGE, errors, status, payload, message)

        self.logger.info("Request failed", status_code=status, path=response.request.url.path)
        return ServerError(message or GENERIC_MESSAGE, status, payload, message)

    def _expire_session(self) -> None:
        """Drop the stored session and send the user back to the login page."""
        self.set_auth_token(None)
        for listener in list(self._session_expired_listeners):
            listener()

        if not self.navigator.on_login_page:
            self.storage.set(REDIRECT_KEY, self.navigator.current_path)
        self.navigator.navigate(SESSION_EXPIRED_PATH)
        self.logger.info("Session expired", redirect=self.storage.get(REDIRECT_KEY))
