"""
WebSocket connection registry for the notification channel.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Set

from pydantic import BaseModel

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import SathiraException
from shared.messages import dump_server_message


@dataclass
class NotificationConnection:
    """WebSocket connection data."""
    connection_id: str
    websocket: Any
    user_id: str
    role: str
    created_at: datetime = field(default_factory=datetime.now)


class NotificationConnectionManager:
    """Tracks open notification sockets by user and by role."""

    def __init__(self, max_connections: int = 1000, metrics: Optional[MetricsCollector] = None):
        self.max_connections = max_connections
        self.metrics = metrics
        self.logger = get_logger("api.ws.connection_manager")

        self.connections: Dict[str, NotificationConnection] = {}
        self.user_connections: Dict[str, Set[str]] = {}
        self.role_connections: Dict[str, Set[str]] = {}

    def _update_gauge(self) -> None:
        if self.metrics:
            self.metrics.set_gauge("active_connections", len(self.connections))

    def add_connection(self, websocket: Any, user_id: str, role: str) -> str:
        if len(self.connections) >= self.max_connections:
            raise SathiraException(
                "CONNECTION_LIMIT_EXCEEDED",
                f"Maximum connections ({self.max_connections}) exceeded"
            )

        connection_id = str(uuid.uuid4())
        self.connections[connection_id] = NotificationConnection(
            connection_id=connection_id,
            websocket=websocket,
            user_id=user_id,
            role=role,
        )
        self.user_connections.setdefault(user_id, set()).add(connection_id)
        self.role_connections.setdefault(role, set()).add(connection_id)

        self.logger.info(
            "WebSocket connection added",
            connection_id=connection_id,
            user_id=user_id,
            role=role,
            total_connections=len(self.connections)
        )
        self._update_gauge()
        return connection_id

    def remove_connection(self, connection_id: str) -> None:
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return

        for index, key in ((self.user_connections, connection.user_id), (self.role_connections, connection.role)):
            members = index.get(key)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del index[key]

        self.logger.info(
            "WebSocket connection removed",
            connection_id=connection_id,
            total_connections=len(self.connections)
        )
        self._update_gauge()

    async def _send(self, connection_ids: Iterable[str], message: BaseModel) -> int:
        frame = dump_server_message(message)
        sent = 0
        for connection_id in list(connection_ids):
            connection = self.connections.get(connection_id)
            if connection is None:
                continue
            try:
                await connection.websocket.send_text(frame)
                sent += 1
            except Exception as exc:
                # Peer went away between lookup and send
                self.logger.warning("Dropping dead connection", connection_id=connection_id, error=str(exc))
                self.remove_connection(connection_id)
        if self.metrics and sent:
            for _ in range(sent):
                self.metrics.increment_counter("notifications_sent_total", message_type=message.type)
        return sent

    async def send_to_user(self, user_id: str, message: BaseModel) -> int:
        return await self._send(self.user_connections.get(user_id, set()), message)

    async def send_to_roles(self, roles: Iterable[str], message: BaseModel) -> int:
        targets: Set[str] = set()
        for role in roles:
            targets |= self.role_connections.get(role, set())
        return await self._send(targets, message)

    async def broadcast(self, message: BaseModel) -> int:
        return await self._send(self.connections.keys(), message)
