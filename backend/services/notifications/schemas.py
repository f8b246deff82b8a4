"""Notification payload schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MAX_TITLE_LENGTH = 255
MAX_DEEP_LINK_LENGTH = 512
MAX_PUSH_TOKEN_LENGTH = 255


class NotificationContent(BaseModel):
    """Everything about a notification except who receives it."""

    tenant_id: str = Field(min_length=1, max_length=36)
    type: str = Field(min_length=1, max_length=40)
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    body: str
    deep_link: str | None = Field(default=None, max_length=MAX_DEEP_LINK_LENGTH)
    data: dict[str, Any] | None = None
    actor_user_id: str | None = Field(default=None, max_length=36)


class NotifyParams(NotificationContent):
    recipient_user_id: str = Field(min_length=1, max_length=36)


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    recipient_user_id: str
    actor_user_id: str | None
    type: str
    title: str
    body: str
    deep_link: str | None
    data: dict[str, Any] | None
    created_at: datetime
    read_at: datetime | None
    archived_at: datetime | None


class InboxResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadResponse(BaseModel):
    updated_count: int


class NotificationPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    tenant_id: str | None
    in_app_enabled: bool
    push_enabled: bool
    email_enabled: bool
    marketing_email_enabled: bool


class NotificationPreferencesUpdate(BaseModel):
    in_app_enabled: bool | None = None
    push_enabled: bool | None = None
    email_enabled: bool | None = None
    marketing_email_enabled: bool | None = None


class PushTargetRegistration(BaseModel):
    # Browsers register through Novu's client SDK, not this endpoint.
    platform: Literal["ios", "android"]
    token: str = Field(min_length=1, max_length=MAX_PUSH_TOKEN_LENGTH)
    is_expo_push_token: bool = False
    email: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    locale: str | None = Field(default=None, max_length=20)


class PushTargetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    novu_subscriber_id: str | None
    push_platform: str | None
    expo_push_token: str | None
