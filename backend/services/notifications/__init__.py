"""Notification domain services."""

from .activity import (
    ActivityTracker,
    RedisActivityTracker,
    SqlActivityTracker,
)
from .batching import BatchSummary, generate_batch_key, summarize_batch
from .deliveries import list_deliveries, log_delivery, prune_deliveries_before
from .dispatcher import (
    NO_DELIVERY_METHOD_REASON,
    OPTED_OUT_REASON,
    NotificationDispatcher,
)
from .inbox import (
    DEFAULT_INBOX_LIMIT,
    MAX_INBOX_LIMIT,
    archive_notification,
    count_unread,
    create_inbox_entry,
    get_batched_notifications,
    get_notification,
    list_inbox,
    mark_all_as_read,
    mark_as_read,
)
from .preferences import default_preferences, get_preferences, upsert_preferences
from .schemas import (
    InboxResponse,
    MarkReadResponse,
    NotificationContent,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
    NotifyParams,
    PushTargetRegistration,
    PushTargetResponse,
    UnreadCountResponse,
)
from .targets import find_target, register_push_target, remove_push_target
from .types import (
    ACTIVITY_THRESHOLDS,
    DEFAULT_ACTIVITY_THRESHOLD_SECONDS,
    NOTIFICATION_TYPES,
    NotificationType,
    get_threshold_for_type,
)

__all__ = [
    "ActivityTracker",
    "SqlActivityTracker",
    "RedisActivityTracker",
    "BatchSummary",
    "generate_batch_key",
    "summarize_batch",
    "log_delivery",
    "list_deliveries",
    "prune_deliveries_before",
    "NotificationDispatcher",
    "OPTED_OUT_REASON",
    "NO_DELIVERY_METHOD_REASON",
    "DEFAULT_INBOX_LIMIT",
    "MAX_INBOX_LIMIT",
    "create_inbox_entry",
    "get_batched_notifications",
    "get_notification",
    "list_inbox",
    "count_unread",
    "mark_as_read",
    "mark_all_as_read",
    "archive_notification",
    "default_preferences",
    "get_preferences",
    "upsert_preferences",
    "NotificationContent",
    "NotifyParams",
    "NotificationResponse",
    "InboxResponse",
    "UnreadCountResponse",
    "MarkReadResponse",
    "NotificationPreferencesResponse",
    "NotificationPreferencesUpdate",
    "PushTargetRegistration",
    "PushTargetResponse",
    "find_target",
    "register_push_target",
    "remove_push_target",
    "ACTIVITY_THRESHOLDS",
    "DEFAULT_ACTIVITY_THRESHOLD_SECONDS",
    "NOTIFICATION_TYPES",
    "NotificationType",
    "get_threshold_for_type",
]
