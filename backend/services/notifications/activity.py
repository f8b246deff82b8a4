"""Recipient presence tracking backed by SQL or Redis."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.errors import is_unique_violation
from models import NotificationTarget
from services.clock import Clock, ensure_aware, utcnow

from .targets import find_target
from .types import ACTIVITY_THRESHOLDS

ACTIVITY_KEY_PREFIX = "notifications:last-active"
logger = logging.getLogger(__name__)


@runtime_checkable
class ActivityTracker(Protocol):
    async def update_last_active(self, user_id: str) -> None: ...

    async def is_active(self, user_id: str, threshold_seconds: int) -> bool: ...


@runtime_checkable
class SupportsActivityClient(Protocol):
    async def set(self, name: str, value: str, ex: int | None = None) -> object: ...

    async def get(self, name: str) -> bytes | str | None: ...


def _within_threshold(last_active_at: datetime, now: datetime, threshold_seconds: int) -> bool:
    elapsed = (now - ensure_aware(last_active_at)).total_seconds()
    return elapsed <= threshold_seconds


class SqlActivityTracker:
    """Stores last-seen timestamps in the ``notification_targets`` table.

    Every call opens its own short session so presence writes commit
    independently of whatever unit of work the caller is in.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock

    async def update_last_active(self, user_id: str) -> None:
        now = self.clock()
        async with self.session_factory() as session:
            target = await find_target(session, user_id)
            if target is not None:
                target.last_active_at = now
                session.add(target)
                await session.commit()
                return

            session.add(NotificationTarget(user_id=user_id, last_active_at=now))
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if not is_unique_violation(exc):
                    raise
                # Another request inserted the row first; last write wins.
                target = await find_target(session, user_id)
                if target is None:  # pragma: no cover - defensive
                    raise
                target.last_active_at = now
                session.add(target)
                await session.commit()

    async def is_active(self, user_id: str, threshold_seconds: int) -> bool:
        async with self.session_factory() as session:
            target = await find_target(session, user_id)
        if target is None or target.last_active_at is None:
            return False
        return _within_threshold(target.last_active_at, self.clock(), threshold_seconds)


class RedisActivityTracker:
    """Stores last-seen epoch seconds under one Redis key per recipient."""

    def __init__(
        self,
        redis_client: SupportsActivityClient,
        *,
        clock: Clock = utcnow,
        prefix: str = ACTIVITY_KEY_PREFIX,
        ttl_seconds: int | None = None,
    ) -> None:
        self.redis = redis_client
        self.clock = clock
        self.prefix = prefix
        # Keys outlive the widest threshold; an expired key reads as inactive.
        self.ttl_seconds = ttl_seconds or max(ACTIVITY_THRESHOLDS.values()) * 2

    def _key(self, user_id: str) -> str:
        return f"{self.prefix}:{user_id}"

    async def update_last_active(self, user_id: str) -> None:
        timestamp = self.clock().timestamp()
        await self.redis.set(self._key(user_id), f"{timestamp:.6f}", ex=self.ttl_seconds)

    async def is_active(self, user_id: str, threshold_seconds: int) -> bool:
        raw_value = await self.redis.get(self._key(user_id))
        if raw_value is None:
            return False
        if isinstance(raw_value, bytes):
            raw_value = raw_value.decode("utf-8")
        try:
            last_active_at = datetime.fromtimestamp(float(raw_value), tz=timezone.utc)
        except ValueError:
            logger.warning(
                "Ignoring malformed activity timestamp",
                extra={"user_id": user_id},
            )
            return False
        return _within_threshold(last_active_at, self.clock(), threshold_seconds)
