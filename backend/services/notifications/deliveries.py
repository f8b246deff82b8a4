"""Append-only delivery log operations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import NotificationDelivery
from services.query import asc, eq

from .types import DeliveryChannel, DeliveryStatus

MAX_ERROR_LENGTH = 2000
logger = logging.getLogger(__name__)


async def log_delivery(
    session: AsyncSession,
    notification_id: str,
    channel: DeliveryChannel,
    status: DeliveryStatus,
    *,
    provider_message_id: str | None = None,
    error: str | None = None,
) -> NotificationDelivery:
    delivery = NotificationDelivery(
        notification_id=notification_id,
        channel=channel,
        status=status,
        provider_message_id=provider_message_id,
        error=error[:MAX_ERROR_LENGTH] if error else None,
    )
    session.add(delivery)
    await session.commit()
    logger.debug(
        "Recorded notification delivery",
        extra={
            "notification_id": notification_id,
            "channel": channel,
            "status": status,
        },
    )
    return delivery


async def list_deliveries(
    session: AsyncSession,
    notification_id: str,
) -> list[NotificationDelivery]:
    result = await session.execute(
        select(NotificationDelivery)
        .where(eq(NotificationDelivery.notification_id, notification_id))
        .order_by(asc(NotificationDelivery.created_at), asc(NotificationDelivery.id))
    )
    return list(result.scalars().all())


async def prune_deliveries_before(
    session: AsyncSession,
    cutoff: datetime,
    *,
    batch_size: int,
) -> int:
    """Delete up to ``batch_size`` delivery rows created before ``cutoff``."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    id_column = cast(ColumnElement[int], NotificationDelivery.id)
    created_at_column = cast(ColumnElement[datetime], NotificationDelivery.created_at)
    stale_ids = (
        select(id_column)
        .where(created_at_column < cutoff)
        .order_by(asc(id_column))
        .limit(batch_size)
        .subquery("stale_deliveries")
    )
    result = await session.execute(
        delete(NotificationDelivery).where(
            id_column.in_(select(cast(ColumnElement[int], stale_ids.c.id)))
        )
    )
    deleted_rows = int(cast(Any, result).rowcount or 0)
    if deleted_rows > 0:
        await session.commit()
    return deleted_rows
