"""Append-only delivery attempt log."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlmodel import Field, SQLModel


class NotificationDelivery(SQLModel, table=True):
    """One row per delivery attempt of a notification on a channel."""

    __tablename__ = "notification_deliveries"
    __table_args__ = (
        Index(
            "ix_notification_deliveries_notification_id",
            "notification_id",
        ),
        Index("ix_notification_deliveries_created_at", "created_at"),
    )

    id: int | None = Field(
        default=None, sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    notification_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    channel: str = Field(sa_column=Column(String(16), nullable=False))
    status: str = Field(sa_column=Column(String(16), nullable=False))
    provider_message_id: str | None = Field(
        default=None, sa_column=Column(String(191), nullable=True)
    )
    error: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
