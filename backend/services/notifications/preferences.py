"""Notification preference lookups and updates."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db.errors import is_unique_violation
from models import NotificationPreferences
from services.query import eq, is_null

DEFAULT_IN_APP_ENABLED = True
DEFAULT_PUSH_ENABLED = True
DEFAULT_EMAIL_ENABLED = True
DEFAULT_MARKETING_EMAIL_ENABLED = False
PREFERENCE_FIELDS = frozenset(
    {"in_app_enabled", "push_enabled", "email_enabled", "marketing_email_enabled"}
)
logger = logging.getLogger(__name__)


def default_preferences(user_id: str, tenant_id: str | None) -> NotificationPreferences:
    """Unsaved preferences used when the user never chose any."""
    return NotificationPreferences(
        user_id=user_id,
        tenant_id=tenant_id,
        in_app_enabled=DEFAULT_IN_APP_ENABLED,
        push_enabled=DEFAULT_PUSH_ENABLED,
        email_enabled=DEFAULT_EMAIL_ENABLED,
        marketing_email_enabled=DEFAULT_MARKETING_EMAIL_ENABLED,
    )


async def _find_preferences(
    session: AsyncSession,
    user_id: str,
    tenant_id: str | None,
) -> NotificationPreferences | None:
    tenant_filter = (
        eq(NotificationPreferences.tenant_id, tenant_id)
        if tenant_id is not None
        else is_null(NotificationPreferences.tenant_id)
    )
    result = await session.execute(
        select(NotificationPreferences)
        .where(eq(NotificationPreferences.user_id, user_id), tenant_filter)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_preferences(
    session: AsyncSession,
    user_id: str,
    tenant_id: str | None = None,
) -> NotificationPreferences:
    """Resolve tenant preferences, then global ones, then defaults."""
    if tenant_id is not None:
        tenant_preferences = await _find_preferences(session, user_id, tenant_id)
        if tenant_preferences is not None:
            return tenant_preferences

    global_preferences = await _find_preferences(session, user_id, None)
    if global_preferences is not None:
        return global_preferences

    return default_preferences(user_id, tenant_id)


def _apply_changes(preferences: NotificationPreferences, changes: dict[str, Any]) -> None:
    for field_name, value in changes.items():
        if value is not None:
            setattr(preferences, field_name, bool(value))


async def upsert_preferences(
    session: AsyncSession,
    user_id: str,
    tenant_id: str | None,
    **changes: bool | None,
) -> NotificationPreferences:
    """Create or update the preference row for ``(user_id, tenant_id)``.

    ``None`` values leave the stored (or default) value untouched.
    """
    unknown_fields = set(changes) - PREFERENCE_FIELDS
    if unknown_fields:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown_fields))}")

    existing = await _find_preferences(session, user_id, tenant_id)
    if existing is not None:
        _apply_changes(existing, changes)
        session.add(existing)
        await session.commit()
        await session.refresh(existing)
        return existing

    created = default_preferences(user_id, tenant_id)
    _apply_changes(created, changes)
    session.add(created)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        logger.info(
            "Preferences created concurrently; applying update instead",
            extra={"user_id": user_id, "tenant_id": tenant_id},
        )
        duplicate = await _find_preferences(session, user_id, tenant_id)
        if duplicate is None:  # pragma: no cover - defensive
            raise
        _apply_changes(duplicate, changes)
        session.add(duplicate)
        await session.commit()
        await session.refresh(duplicate)
        return duplicate

    await session.refresh(created)
    return created
