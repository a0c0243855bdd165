from .channel import NotificationChannel
from .dispatcher import NotificationCenter

__all__ = ["NotificationCenter", "NotificationChannel"]
