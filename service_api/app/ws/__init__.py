from .connection_manager import NotificationConnection, NotificationConnectionManager

__all__ = ["NotificationConnection", "NotificationConnectionManager"]
