"""Inbox persistence: the source of truth for every notification."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Notification
from services.clock import utcnow
from services.query import asc, desc, eq, is_null

from .schemas import NotifyParams

DEFAULT_INBOX_LIMIT = 20
MAX_INBOX_LIMIT = 100
logger = logging.getLogger(__name__)


async def create_inbox_entry(
    session: AsyncSession,
    params: NotifyParams,
    *,
    batch_key: str | None,
) -> Notification:
    """Persist and commit a new inbox entry.

    Errors propagate: without a stored row there is nothing to deliver.
    """
    notification = Notification(
        tenant_id=params.tenant_id,
        recipient_user_id=params.recipient_user_id,
        actor_user_id=params.actor_user_id,
        type=params.type,
        title=params.title,
        body=params.body,
        deep_link=params.deep_link,
        data=params.data,
        batch_key=batch_key,
    )
    session.add(notification)
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.error(
            "Failed to persist inbox entry",
            extra={
                "tenant_id": params.tenant_id,
                "recipient_user_id": params.recipient_user_id,
                "type": params.type,
            },
        )
        raise
    return notification


async def get_batched_notifications(
    session: AsyncSession,
    batch_key: str,
    *,
    recipient_user_id: str,
    tenant_id: str,
) -> list[Notification]:
    """Return the recipient's entries sharing ``batch_key``, oldest first."""
    result = await session.execute(
        select(Notification)
        .where(
            eq(Notification.batch_key, batch_key),
            eq(Notification.recipient_user_id, recipient_user_id),
            eq(Notification.tenant_id, tenant_id),
        )
        .order_by(asc(Notification.created_at), asc(Notification.id))
    )
    return list(result.scalars().all())


async def get_notification(
    session: AsyncSession,
    notification_id: str,
    *,
    user_id: str,
    tenant_id: str,
) -> Notification | None:
    result = await session.execute(
        select(Notification)
        .where(
            eq(Notification.id, notification_id),
            eq(Notification.recipient_user_id, user_id),
            eq(Notification.tenant_id, tenant_id),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_inbox(
    session: AsyncSession,
    *,
    user_id: str,
    tenant_id: str,
    limit: int = DEFAULT_INBOX_LIMIT,
    offset: int = 0,
) -> Sequence[Notification]:
    if limit <= 0:
        raise ValueError("limit must be positive")
    if offset < 0:
        raise ValueError("offset must be non-negative")

    result = await session.execute(
        select(Notification)
        .where(
            eq(Notification.tenant_id, tenant_id),
            eq(Notification.recipient_user_id, user_id),
            is_null(Notification.archived_at),
        )
        .order_by(desc(Notification.created_at), desc(Notification.id))
        .offset(offset)
        .limit(min(limit, MAX_INBOX_LIMIT))
    )
    return result.scalars().all()


async def count_unread(
    session: AsyncSession,
    *,
    user_id: str,
    tenant_id: str,
) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(
            eq(Notification.tenant_id, tenant_id),
            eq(Notification.recipient_user_id, user_id),
            is_null(Notification.read_at),
            is_null(Notification.archived_at),
        )
    )
    return int(result.scalar_one() or 0)


async def mark_as_read(
    session: AsyncSession,
    notification_id: str,
    *,
    user_id: str,
    tenant_id: str,
    now: datetime | None = None,
) -> bool:
    """Stamp ``read_at`` once; already-read entries keep their timestamp."""
    result = await session.execute(
        update(Notification)
        .where(
            eq(Notification.id, notification_id),
            eq(Notification.recipient_user_id, user_id),
            eq(Notification.tenant_id, tenant_id),
            is_null(Notification.read_at),
        )
        .values(read_at=now or utcnow())
    )
    await session.commit()
    return int(cast(Any, result).rowcount or 0) > 0


async def mark_all_as_read(
    session: AsyncSession,
    *,
    user_id: str,
    tenant_id: str,
    now: datetime | None = None,
) -> int:
    result = await session.execute(
        update(Notification)
        .where(
            eq(Notification.tenant_id, tenant_id),
            eq(Notification.recipient_user_id, user_id),
            is_null(Notification.read_at),
        )
        .values(read_at=now or utcnow())
    )
    await session.commit()
    return int(cast(Any, result).rowcount or 0)


async def archive_notification(
    session: AsyncSession,
    notification_id: str,
    *,
    user_id: str,
    tenant_id: str,
    now: datetime | None = None,
) -> bool:
    """Stamp ``archived_at`` once; archived entries are never restored."""
    result = await session.execute(
        update(Notification)
        .where(
            eq(Notification.id, notification_id),
            eq(Notification.recipient_user_id, user_id),
            eq(Notification.tenant_id, tenant_id),
            is_null(Notification.archived_at),
        )
        .values(archived_at=now or utcnow())
    )
    await session.commit()
    return int(cast(Any, result).rowcount or 0) > 0
