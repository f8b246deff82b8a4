"""Presence and push registration record for a notification recipient."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, func
from sqlmodel import Field, SQLModel


class NotificationTarget(SQLModel, table=True):
    """Last-seen timestamp and registered push device, one row per user."""

    __tablename__ = "notification_targets"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        sa_column=Column(String(36), primary_key=True),
    )
    user_id: str = Field(
        sa_column=Column(String(36), nullable=False, unique=True, index=True)
    )
    novu_subscriber_id: str | None = Field(
        default=None, sa_column=Column(String(36), nullable=True, index=True)
    )
    expo_push_token: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    push_platform: str | None = Field(
        default=None, sa_column=Column(String(16), nullable=True)
    )
    # Last write wins; an out-of-order heartbeat may move this backwards.
    last_active_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
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
