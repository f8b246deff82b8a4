"""SQLModel models package."""

from .notification import Notification
from .notification_delivery import NotificationDelivery
from .notification_preferences import NotificationPreferences
from .notification_target import NotificationTarget
from .subscription import Subscription

__all__ = [
    "Notification",
    "NotificationDelivery",
    "NotificationPreferences",
    "NotificationTarget",
    "Subscription",
]
