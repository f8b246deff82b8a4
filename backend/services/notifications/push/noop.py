"""Push provider that accepts everything and delivers nothing."""

from __future__ import annotations

import logging
from uuid import uuid4

from .types import (
    PushCredentials,
    PushPlatform,
    PushProviderConfig,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

logger = logging.getLogger(__name__)


class NoOpPushProvider:
    """Used when no push vendor is configured, and in development."""

    name = "noop"

    def __init__(self) -> None:
        self._initialized = False

    async def initialize(self, config: PushProviderConfig) -> None:
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        logger.debug("noop push", extra={"user_id": params.user_id, "title": params.title})
        return SendPushResult(message_id=f"noop_{uuid4().hex}", success=True)

    async def send_batched_push(
        self,
        user_id: str,
        notifications: list[SendPushParams],
    ) -> SendPushResult:
        logger.debug(
            "noop batched push",
            extra={"user_id": user_id, "count": len(notifications)},
        )
        return SendPushResult(message_id=f"noop_batch_{uuid4().hex}", success=True)

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        logger.debug("noop identify subscriber", extra={"user_id": info.user_id})

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        logger.debug(
            "noop set credentials",
            extra={"user_id": user_id, "platform": credentials.platform},
        )

    async def remove_credentials(
        self,
        user_id: str,
        platform: PushPlatform,
        *,
        expo: bool = False,
    ) -> None:
        logger.debug(
            "noop remove credentials",
            extra={"user_id": user_id, "platform": platform},
        )

    async def aclose(self) -> None:
        return None
