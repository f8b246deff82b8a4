"""Startup-time selection of the push provider implementation."""

from __future__ import annotations

import logging

from core.config import Settings

from .noop import NoOpPushProvider
from .novu import NovuPushProvider
from .types import PUSH_PROVIDER_TYPES, PushProvider, PushProviderConfig, PushProviderType

logger = logging.getLogger(__name__)


def resolve_provider_type(settings: Settings) -> PushProviderType:
    """Explicit ``NOTIFICATION_PROVIDER`` wins, else Novu when a secret is set."""
    configured = settings.notification_provider.strip().lower()
    if configured in PUSH_PROVIDER_TYPES:
        return "novu" if configured == "novu" else "none"
    if configured:
        logger.warning(
            "Unknown notification provider; auto-detecting",
            extra={"notification_provider": configured},
        )
    if settings.novu_secret_key:
        return "novu"
    return "none"


def build_provider_config(
    provider_type: PushProviderType,
    settings: Settings,
) -> PushProviderConfig:
    if provider_type == "novu":
        return PushProviderConfig(
            api_key=settings.novu_secret_key,
            app_id=settings.novu_app_id,
            environment="production" if settings.environment == "production" else "development",
            base_url=settings.novu_base_url,
            timeout_seconds=settings.novu_timeout_seconds,
        )
    return PushProviderConfig()


async def create_push_provider(
    settings: Settings,
    *,
    provider_type: PushProviderType | None = None,
) -> PushProvider:
    """Build and initialize the provider once; the caller owns its lifetime."""
    resolved_type = provider_type or resolve_provider_type(settings)
    provider: PushProvider
    if resolved_type == "novu":
        provider = NovuPushProvider()
    else:
        provider = NoOpPushProvider()

    await provider.initialize(build_provider_config(resolved_type, settings))
    logger.info("Push provider initialized", extra={"provider": provider.name})
    return provider
