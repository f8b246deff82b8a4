"""Push device registration for notification recipients.

The vendor is told first; a refused registration leaves the local row as it
was. Subscriber ids are user ids.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db.errors import is_unique_violation
from models import NotificationTarget
from services.clock import Clock, utcnow
from services.query import eq

from .push import PushCredentials, PushPlatform, PushProvider, SubscriberInfo

logger = logging.getLogger(__name__)


async def find_target(session: AsyncSession, user_id: str) -> NotificationTarget | None:
    result = await session.execute(
        select(NotificationTarget).where(eq(NotificationTarget.user_id, user_id)).limit(1)
    )
    return result.scalar_one_or_none()


def _apply_changes(target: NotificationTarget, changes: dict[str, Any]) -> None:
    for field_name, value in changes.items():
        setattr(target, field_name, value)


async def _upsert_target(
    session: AsyncSession,
    user_id: str,
    changes: dict[str, Any],
) -> NotificationTarget:
    target = await find_target(session, user_id)
    if target is None:
        target = NotificationTarget(user_id=user_id, **changes)
        session.add(target)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            if not is_unique_violation(exc):
                raise
            target = await find_target(session, user_id)
            if target is None:  # pragma: no cover - defensive
                raise
            _apply_changes(target, changes)
            session.add(target)
            await session.commit()
    else:
        _apply_changes(target, changes)
        session.add(target)
        await session.commit()

    await session.refresh(target)
    return target


async def register_push_target(
    session: AsyncSession,
    push_provider: PushProvider,
    subscriber: SubscriberInfo,
    credentials: PushCredentials,
    *,
    clock: Clock = utcnow,
) -> NotificationTarget:
    """Identify the subscriber, attach the device, then record it locally."""
    user_id = subscriber.user_id
    await push_provider.identify_subscriber(subscriber)
    await push_provider.set_credentials(user_id, credentials)

    target = await _upsert_target(
        session,
        user_id,
        {
            "novu_subscriber_id": user_id,
            "expo_push_token": credentials.expo_push_token,
            "push_platform": credentials.platform,
            "last_active_at": clock(),
        },
    )
    logger.info(
        "Push target registered",
        extra={
            "user_id": user_id,
            "platform": credentials.platform,
            "provider": push_provider.name,
        },
    )
    return target


async def remove_push_target(
    session: AsyncSession,
    push_provider: PushProvider,
    user_id: str,
    platform: PushPlatform,
) -> NotificationTarget | None:
    """Drop the device credentials; presence data on the row is kept."""
    target = await find_target(session, user_id)
    expo = target is not None and bool(target.expo_push_token)
    await push_provider.remove_credentials(user_id, platform, expo=expo)
    if target is None:
        return None

    target.expo_push_token = None
    target.push_platform = None
    session.add(target)
    await session.commit()
    await session.refresh(target)
    logger.info(
        "Push target removed",
        extra={"user_id": user_id, "platform": platform, "provider": push_provider.name},
    )
    return target
