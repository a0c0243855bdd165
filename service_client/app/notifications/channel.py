"""
WebSocket connection to the server notification channel.
"""

from typing import Any, Callable, Optional

import websockets
from pydantic import ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.messages import AuthFrame
from ..errors import AuthenticationError
from ..storage import ClientStorage, TOKEN_KEY
from .dispatcher import NotificationCenter


POLICY_VIOLATION = 4401


class NotificationChannel:
    """Authenticates on connect, then feeds every frame to the center in order."""

    def __init__(
        self,
        url: str,
        storage: ClientStorage,
        center: NotificationCenter,
        *,
        open_timeout: float = 10.0,
        connect: Optional[Callable[..., Any]] = None,
    ):
        self.url = url
        self.storage = storage
        self.center = center
        self.open_timeout = open_timeout
        self._connect = connect or websockets.connect
        self.logger = get_logger("client.notification_channel")
        self.received = 0

    async def run(self) -> None:
        """Receive until the server closes the channel."""
        token = self.storage.get(TOKEN_KEY)
        if not token:
            raise AuthenticationError("Authentication required. Please log in.")

        try:
            async with self._connect(self.url, open_timeout=self.open_timeout) as websocket:
                await websocket.send(AuthFrame(token=token).model_dump_json())
                self.logger.info("Notification channel connected", url=self.url)
                async for raw in websocket:
                    self._handle(raw)
        except websockets.ConnectionClosed as exc:
            code = exc.rcvd.code if exc.rcvd is not None else None
            self.logger.info("Notification channel closed", code=code)
            if code == POLICY_VIOLATION:
                raise AuthenticationError("Notification channel rejected the session token") from exc

    def _handle(self, raw: Any) -> None:
        try:
            self.center.handle_raw(raw)
        except PydanticValidationError as exc:
            self.logger.warning("Ignoring unrecognized notification frame", error=str(exc))
            return
        self.received += 1
