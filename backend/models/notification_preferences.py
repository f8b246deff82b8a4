"""Per-recipient notification channel preferences."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String, UniqueConstraint, func, text
from sqlmodel import Field, SQLModel


class NotificationPreferences(SQLModel, table=True):
    """Channel opt-ins for a user, either tenant-specific or global.

    A row with ``tenant_id`` set to ``None`` holds the user's global
    preferences and applies to every tenant without its own row.
    """

    __tablename__ = "notification_preferences"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "tenant_id",
            name="ux_notification_preferences_user_tenant",
        ),
        Index("ix_notification_preferences_tenant_id", "tenant_id"),
        # NULL tenant_id is distinct in the constraint above; one global row per user.
        Index(
            "ux_notification_preferences_user_global",
            "user_id",
            unique=True,
            postgresql_where=text("tenant_id IS NULL"),
            sqlite_where=text("tenant_id IS NULL"),
        ),
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        sa_column=Column(String(36), primary_key=True),
    )
    user_id: str = Field(
        sa_column=Column(String(36), nullable=False, index=True)
    )
    tenant_id: str | None = Field(
        default=None, sa_column=Column(String(36), nullable=True)
    )
    in_app_enabled: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    push_enabled: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    email_enabled: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    marketing_email_enabled: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=text("false")),
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
