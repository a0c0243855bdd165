"""
Client-side handling of notification channel messages.
"""

from typing import Any, Callable, Dict, List, Optional, get_args

from pydantic import BaseModel

from shared.logging import get_logger
from shared.messages import (
    DashboardUpdateMessage,
    InventoryAlertMessage,
    Notification,
    NotificationMessage,
    ServerMessage,
    parse_server_message,
)


# message class -> NotificationCenter method
_HANDLERS: Dict[type, str] = {
    NotificationMessage: "_on_notification",
    DashboardUpdateMessage: "_on_dashboard_update",
    InventoryAlertMessage: "_on_inventory_alert",
}


def _message_variants() -> List[type]:
    union = get_args(ServerMessage)[0]
    return list(get_args(union))


_unhandled = [variant.__name__ for variant in _message_variants() if variant not in _HANDLERS]
if _unhandled:
    raise TypeError(f"No notification handler for: {', '.join(_unhandled)}")


MessageListener = Callable[[BaseModel], Any]


class NotificationCenter:
    """Holds notifications and dashboard state pushed by the server."""

    def __init__(self, max_notifications: int = 50):
        self.max_notifications = max_notifications
        self.logger = get_logger("client.notifications")
        self.notifications: List[Notification] = []
        self.dashboard_updates: Dict[str, Dict[str, Any]] = {}
        self.inventory_alerts: List[InventoryAlertMessage] = []
        self._listeners: List[MessageListener] = []

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)

    def subscribe(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, message: BaseModel) -> None:
        handler = getattr(self, _HANDLERS[type(message)])
        handler(message)
        for listener in list(self._listeners):
            listener(message)

    def handle_raw(self, raw: Any) -> BaseModel:
        message = parse_server_message(raw)
        self.dispatch(message)
        return message

    def mark_read(self, notification_id: str) -> bool:
        for notification in self.notifications:
            if notification.id == notification_id:
                notification.is_read = True
                return True
        return False

    def mark_all_read(self) -> None:
        for notification in self.notifications:
            notification.is_read = True

    def latest_dashboard(self, dashboard: str) -> Optional[Dict[str, Any]]:
        return self.dashboard_updates.get(dashboard)

    def _on_notification(self, message: NotificationMessage) -> None:
        self.notifications.insert(0, message.notification)
        del self.notifications[self.max_notifications:]

    def _on_dashboard_update(self, message: DashboardUpdateMessage) -> None:
        self.dashboard_updates[message.dashboard] = message.data

    def _on_inventory_alert(self, message: InventoryAlertMessage) -> None:
        self.inventory_alerts.insert(0, message)
        del self.inventory_alerts[self.max_notifications:]
        self.logger.info(
            "Low stock alert",
            product_id=message.product_id,
            current_stock=message.current_stock,
            minimum_threshold=message.minimum_threshold,
        )
