"""Notification type catalogue and per-type presence thresholds."""

from __future__ import annotations

from typing import Final, Literal, get_args

NotificationType = Literal[
    # Communication
    "direct_message",
    "milestone",
    "kudos_sent",
    # Tasks
    "todo_assigned",
    "todo_nudge",
    "todo_completed",
    # Events
    "event_created",
    "event_reminder",
    "event_changed",
    # Alerts & limits
    "achievement",
    "limit_alert",
    "survey_created",
    # System & membership
    "member_joined",
    "member_invited",
    "settings_changed",
]
NOTIFICATION_TYPES: Final[tuple[str, ...]] = get_args(NotificationType)

DeliveryChannel = Literal["in_app", "push"]
DeliveryStatus = Literal["sent", "skipped", "failed"]

CHANNEL_IN_APP: Final = "in_app"
CHANNEL_PUSH: Final = "push"
STATUS_SENT: Final = "sent"
STATUS_SKIPPED: Final = "skipped"
STATUS_FAILED: Final = "failed"

DEFAULT_ACTIVITY_THRESHOLD_SECONDS: Final = 120

# How recently a recipient must have been seen to count as present, by type.
# Urgent types use a short window so an idle recipient gets a push sooner.
ACTIVITY_THRESHOLDS: Final[dict[str, int]] = {
    "direct_message": 300,
    "milestone": 300,
    "kudos_sent": 300,
    "todo_assigned": 120,
    "todo_nudge": 60,
    "todo_completed": 180,
    "event_created": 120,
    "event_reminder": 60,
    "event_changed": 120,
    "achievement": 180,
    "limit_alert": 60,
    "survey_created": 120,
    "member_joined": 120,
    "member_invited": 120,
    "settings_changed": 120,
}


def get_threshold_for_type(notification_type: str) -> int:
    """Return the presence threshold in seconds, 120 for unknown types."""
    return ACTIVITY_THRESHOLDS.get(notification_type, DEFAULT_ACTIVITY_THRESHOLD_SECONDS)
