"""Resolve a tenant's subscription record into entitlements.

Entitlements are recomputed on every call; callers that need caching own it.
Any status without an explicit access rule resolves to the free tier.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Literal, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Subscription
from services.clock import ensure_aware, utcnow
from services.query import desc, eq

from .tiers import (
    GRACE_PERIOD_DAYS,
    FeatureName,
    SubscriptionSummary,
    TenantEntitlements,
    free_tier_entitlements,
    pro_tier_entitlements,
    require_feature,
)

ACCESS_CANDIDATE_STATUSES = ("active", "trialing", "past_due", "canceled")
logger = logging.getLogger(__name__)


async def find_latest_subscription(
    session: AsyncSession,
    tenant_id: str,
) -> Subscription | None:
    status_column = cast(ColumnElement[str], Subscription.status)
    result = await session.execute(
        select(Subscription)
        .where(
            eq(Subscription.tenant_id, tenant_id),
            status_column.in_(ACCESS_CANDIDATE_STATUSES),
        )
        .order_by(
            desc(Subscription.updated_at),
            desc(Subscription.created_at),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


def subscription_grants_access(subscription: Subscription, now: datetime) -> bool:
    period_end = (
        ensure_aware(subscription.current_period_end)
        if subscription.current_period_end is not None
        else None
    )

    if subscription.status in ("active", "trialing"):
        return True
    if subscription.status == "past_due":
        if period_end is None:
            return False
        return now < period_end + timedelta(days=GRACE_PERIOD_DAYS)
    if subscription.status == "canceled":
        if not subscription.cancel_at_period_end or period_end is None:
            return False
        return now < period_end
    return False


async def get_tenant_entitlements(
    session: AsyncSession,
    tenant_id: str,
    *,
    now: datetime | None = None,
) -> TenantEntitlements:
    subscription = await find_latest_subscription(session, tenant_id)
    if subscription is None:
        return free_tier_entitlements(tenant_id)

    if not subscription_grants_access(subscription, now or utcnow()):
        logger.debug(
            "Subscription grants no access; resolving to free tier",
            extra={"tenant_id": tenant_id, "status": subscription.status},
        )
        return free_tier_entitlements(tenant_id)

    return pro_tier_entitlements(
        tenant_id,
        SubscriptionSummary(
            status=subscription.status,
            period_end=(
                ensure_aware(subscription.current_period_end)
                if subscription.current_period_end is not None
                else None
            ),
            cancel_at_period_end=bool(subscription.cancel_at_period_end),
            provider=subscription.provider,
        ),
    )


async def get_user_entitlements(
    session: AsyncSession,
    user_id: str,
    active_tenant_id: str | None,
    *,
    now: datetime | None = None,
) -> TenantEntitlements | None:
    """Entitlements of the user's active tenant, or None without one."""
    if not active_tenant_id:
        return None
    return await get_tenant_entitlements(session, active_tenant_id, now=now)


async def has_tier(
    session: AsyncSession,
    tenant_id: str,
    tier: Literal["pro", "enterprise"],
    *,
    now: datetime | None = None,
) -> bool:
    entitlements = await get_tenant_entitlements(session, tenant_id, now=now)
    if tier == "pro":
        return entitlements.tier in ("pro", "enterprise")
    return entitlements.tier == tier


async def has_feature_access(
    session: AsyncSession,
    tenant_id: str,
    feature: FeatureName,
    *,
    now: datetime | None = None,
) -> bool:
    entitlements = await get_tenant_entitlements(session, tenant_id, now=now)
    return require_feature(entitlements, feature)
