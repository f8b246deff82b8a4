"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session
from services.notifications import NotificationDispatcher
from services.notifications.push import PushProvider
from services.subscriptions import FeatureName, get_tenant_entitlements, require_feature

USER_ID_HEADER = "X-User-Id"
TENANT_ID_HEADER = "X-Tenant-Id"
MAX_IDENTIFIER_LENGTH = 36


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    tenant_id: str


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _normalize_identifier(raw_value: str | None) -> str | None:
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    if not normalized or len(normalized) > MAX_IDENTIFIER_LENGTH:
        return None
    return normalized


async def get_current_identity(
    x_user_id: str | None = Header(default=None),
    x_tenant_id: str | None = Header(default=None),
) -> CallerIdentity:
    """Identity forwarded by the upstream gateway.

    Authentication happens before requests reach this service.
    """
    user_id = _normalize_identifier(x_user_id)
    tenant_id = _normalize_identifier(x_tenant_id)
    if user_id is None or tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    return CallerIdentity(user_id=user_id, tenant_id=tenant_id)


def get_dispatcher(request: Request) -> NotificationDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification dispatcher unavailable",
        )
    return dispatcher


def get_push_provider(request: Request) -> PushProvider:
    push_provider = getattr(request.app.state, "push_provider", None)
    if push_provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push provider unavailable",
        )
    return push_provider


def require_feature_dependency(
    feature: FeatureName,
) -> Callable[..., Awaitable[CallerIdentity]]:
    """Build a dependency that rejects tenants without ``feature``."""

    async def _require_feature(
        session: AsyncSession = Depends(get_db),
        identity: CallerIdentity = Depends(get_current_identity),
    ) -> CallerIdentity:
        entitlements = await get_tenant_entitlements(session, identity.tenant_id)
        if not require_feature(entitlements, feature):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Upgrade required",
            )
        return identity

    return _require_feature
