"""Provider-agnostic push payloads and the provider protocol."""

from __future__ import annotations

from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel

PushProviderType = Literal["novu", "none"]
PUSH_PROVIDER_TYPES: frozenset[str] = frozenset({"novu", "none"})
PushPlatform = Literal["ios", "android", "web"]


class PushProviderError(RuntimeError):
    """Raised when the push vendor rejects or fails a request."""


class PushProviderNotInitializedError(PushProviderError):
    pass


class PushProviderConfig(BaseModel):
    api_key: str = ""
    app_id: str = ""
    environment: Literal["production", "development"] = "development"
    base_url: str | None = None
    timeout_seconds: float = 10.0


class SubscriberInfo(BaseModel):
    user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    locale: str | None = None
    avatar: str | None = None
    data: dict[str, Any] | None = None


class PushCredentials(BaseModel):
    """A device registration; Expo tokens take precedence over native ones."""

    platform: PushPlatform
    token: str = ""
    expo_push_token: str | None = None
    web_push_subscription: dict[str, Any] | None = None


class SendPushParams(BaseModel):
    user_id: str
    title: str
    body: str
    type: str | None = None
    deep_link: str | None = None
    data: dict[str, Any] | None = None
    badge: int | None = None
    sound: str | None = None
    image_url: str | None = None


class SendPushResult(BaseModel):
    message_id: str | None = None
    success: bool
    error: str | None = None


@runtime_checkable
class PushProvider(Protocol):
    """What the delivery engine needs from a push vendor.

    Sends may raise on transport failure; callers treat a raise and a
    ``success=False`` result the same way. Subscriber and credential calls
    raise ``PushProviderError`` when the vendor refuses them.
    """

    name: str

    async def initialize(self, config: PushProviderConfig) -> None: ...

    def is_initialized(self) -> bool: ...

    async def send_push(self, params: SendPushParams) -> SendPushResult: ...

    async def send_batched_push(
        self,
        user_id: str,
        notifications: list[SendPushParams],
    ) -> SendPushResult: ...

    async def identify_subscriber(self, info: SubscriberInfo) -> None: ...

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None: ...

    async def remove_credentials(
        self,
        user_id: str,
        platform: PushPlatform,
        *,
        expo: bool = False,
    ) -> None: ...

    async def aclose(self) -> None: ...
