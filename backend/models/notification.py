"""Inbox notification persistence model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Index, String, Text, func
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notification(SQLModel, table=True):
    """A single inbox entry, written before any delivery decision."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index(
            "ix_notifications_inbox",
            "tenant_id",
            "recipient_user_id",
            "created_at",
        ),
        Index("ix_notifications_unread", "recipient_user_id", "read_at"),
        Index("ix_notifications_batch_key", "batch_key"),
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        sa_column=Column(String(36), primary_key=True),
    )
    tenant_id: str = Field(sa_column=Column(String(36), nullable=False))
    recipient_user_id: str = Field(sa_column=Column(String(36), nullable=False))
    actor_user_id: str | None = Field(
        default=None, sa_column=Column(String(36), nullable=True)
    )
    type: str = Field(sa_column=Column(String(40), nullable=False))
    title: str = Field(sa_column=Column(String(255), nullable=False))
    body: str = Field(sa_column=Column(Text, nullable=False))
    deep_link: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True)
    )
    data: dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )
    batch_key: str | None = Field(
        default=None, sa_column=Column(String(191), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    read_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    archived_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
