"""Tenant subscription record synced from billing providers."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String, func, text
from sqlmodel import Field, SQLModel


class Subscription(SQLModel, table=True):
    """Latest known billing state for a tenant plan.

    Rows are written by billing webhooks (Polar on web, RevenueCat on
    mobile); the entitlements resolver only reads them.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_tenant_status", "tenant_id", "status"),
    )

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        sa_column=Column(String(36), primary_key=True),
    )
    tenant_id: str = Field(
        sa_column=Column(String(36), nullable=False, index=True)
    )
    status: str = Field(
        default="active",
        sa_column=Column(String(20), nullable=False, server_default="active"),
    )
    plan_id: str = Field(sa_column=Column(String(100), nullable=False))
    plan_name: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    provider: str = Field(sa_column=Column(String(20), nullable=False))
    current_period_start: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    current_period_end: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    cancel_at_period_end: bool = Field(
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
