"""Subscription entitlements."""

from .entitlements import (
    find_latest_subscription,
    get_tenant_entitlements,
    get_user_entitlements,
    has_feature_access,
    has_tier,
    subscription_grants_access,
)
from .tiers import (
    FREE_TIER_FEATURES,
    GRACE_PERIOD_DAYS,
    PRO_TIER_FEATURES,
    UNLIMITED,
    FeatureName,
    SubscriptionFeatures,
    SubscriptionSummary,
    SubscriptionTier,
    TenantEntitlements,
    free_tier_entitlements,
    get_days_until_expiry,
    is_cancelled_but_active,
    is_free_tier,
    is_in_grace_period,
    is_pro_or_higher,
    pro_tier_entitlements,
    require_entitlement,
    require_feature,
)

__all__ = [
    "find_latest_subscription",
    "get_tenant_entitlements",
    "get_user_entitlements",
    "has_feature_access",
    "has_tier",
    "subscription_grants_access",
    "FREE_TIER_FEATURES",
    "PRO_TIER_FEATURES",
    "GRACE_PERIOD_DAYS",
    "UNLIMITED",
    "FeatureName",
    "SubscriptionFeatures",
    "SubscriptionSummary",
    "SubscriptionTier",
    "TenantEntitlements",
    "free_tier_entitlements",
    "pro_tier_entitlements",
    "get_days_until_expiry",
    "is_cancelled_but_active",
    "is_free_tier",
    "is_in_grace_period",
    "is_pro_or_higher",
    "require_entitlement",
    "require_feature",
]
