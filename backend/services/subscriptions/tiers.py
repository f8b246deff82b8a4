"""Subscription tiers, their feature sets and pure entitlement guards."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Final, Literal

from pydantic import BaseModel

from services.clock import ensure_aware, utcnow

SubscriptionTier = Literal["free", "pro", "enterprise"]
FeatureName = Literal[
    "ads_enabled",
    "export_limit",
    "bulk_export",
    "priority_support",
    "max_members",
]
TIER_HIERARCHY: Final[tuple[SubscriptionTier, ...]] = ("free", "pro", "enterprise")
UNLIMITED: Final = -1
GRACE_PERIOD_DAYS: Final = 7


class SubscriptionFeatures(BaseModel):
    ads_enabled: bool
    export_limit: int
    bulk_export: bool
    priority_support: bool
    max_members: int


class SubscriptionSummary(BaseModel):
    status: str
    period_end: datetime | None
    cancel_at_period_end: bool
    provider: str


class TenantEntitlements(BaseModel):
    tenant_id: str
    tier: SubscriptionTier
    has_access: bool
    features: SubscriptionFeatures
    subscription: SubscriptionSummary | None = None


FREE_TIER_FEATURES: Final = SubscriptionFeatures(
    ads_enabled=True,
    export_limit=10,
    bulk_export=False,
    priority_support=False,
    max_members=5,
)
PRO_TIER_FEATURES: Final = SubscriptionFeatures(
    ads_enabled=False,
    export_limit=UNLIMITED,
    bulk_export=True,
    priority_support=True,
    max_members=UNLIMITED,
)


def free_tier_entitlements(tenant_id: str) -> TenantEntitlements:
    return TenantEntitlements(
        tenant_id=tenant_id,
        tier="free",
        has_access=False,
        features=FREE_TIER_FEATURES.model_copy(),
    )


def pro_tier_entitlements(
    tenant_id: str,
    subscription: SubscriptionSummary | None = None,
) -> TenantEntitlements:
    return TenantEntitlements(
        tenant_id=tenant_id,
        tier="pro",
        has_access=True,
        features=PRO_TIER_FEATURES.model_copy(),
        subscription=subscription,
    )


def require_entitlement(
    entitlements: TenantEntitlements,
    required_tier: Literal["pro", "enterprise"],
) -> bool:
    """True when the tenant's tier is ``required_tier`` or higher."""
    return TIER_HIERARCHY.index(entitlements.tier) >= TIER_HIERARCHY.index(required_tier)


def require_feature(entitlements: TenantEntitlements, feature: FeatureName) -> bool:
    """Whether ``feature`` is available under the resolved entitlements.

    Limits count as available when unlimited (-1) or positive. ``ads_enabled``
    reads inverted: having the feature means ads are off.
    """
    if feature not in SubscriptionFeatures.model_fields:
        raise ValueError(f"Unknown feature: {feature}")

    value = getattr(entitlements.features, feature)
    if isinstance(value, bool):
        if feature == "ads_enabled":
            return value is False
        return value is True
    return value == UNLIMITED or value > 0


def is_free_tier(entitlements: TenantEntitlements) -> bool:
    return entitlements.tier == "free"


def is_pro_or_higher(entitlements: TenantEntitlements) -> bool:
    return entitlements.tier in ("pro", "enterprise")


def is_in_grace_period(entitlements: TenantEntitlements) -> bool:
    if entitlements.subscription is None:
        return False
    return entitlements.subscription.status == "past_due" and entitlements.has_access


def is_cancelled_but_active(entitlements: TenantEntitlements) -> bool:
    subscription = entitlements.subscription
    if subscription is None:
        return False
    return (
        subscription.status == "canceled"
        and subscription.cancel_at_period_end
        and entitlements.has_access
    )


def get_days_until_expiry(
    entitlements: TenantEntitlements,
    *,
    now: datetime | None = None,
) -> int | None:
    """Whole days left on a subscription set to end, rounded up; else None."""
    subscription = entitlements.subscription
    if subscription is None or subscription.period_end is None:
        return None
    if not subscription.cancel_at_period_end:
        return None

    remaining = ensure_aware(subscription.period_end) - (now or utcnow())
    days = math.ceil(remaining.total_seconds() / 86400)
    return max(days, 0)
