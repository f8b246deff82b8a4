"""Push delivery providers."""

from .factory import build_provider_config, create_push_provider, resolve_provider_type
from .noop import NoOpPushProvider
from .novu import NovuPushProvider
from .types import (
    PushCredentials,
    PushPlatform,
    PushProvider,
    PushProviderConfig,
    PushProviderError,
    PushProviderNotInitializedError,
    PushProviderType,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

__all__ = [
    "PushProvider",
    "PushProviderConfig",
    "PushProviderError",
    "PushProviderNotInitializedError",
    "PushCredentials",
    "PushPlatform",
    "PushProviderType",
    "SendPushParams",
    "SendPushResult",
    "SubscriberInfo",
    "NoOpPushProvider",
    "NovuPushProvider",
    "build_provider_config",
    "create_push_provider",
    "resolve_provider_type",
]
