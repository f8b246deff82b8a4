"""Novu-backed push provider.

Novu fans a triggered workflow out to the subscriber's registered devices
(Expo push on mobile, web push in browsers). Subscriber ids are user ids.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..batching import summarize_batch
from .types import (
    PushCredentials,
    PushPlatform,
    PushProviderConfig,
    PushProviderError,
    PushProviderNotInitializedError,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

DEFAULT_NOVU_BASE_URL = "https://api.novu.co"
TRIGGER_PATH = "/v1/events/trigger"
SUBSCRIBERS_PATH = "/v1/subscribers"
PUSH_WORKFLOW = "push-notification"
BATCHED_PUSH_WORKFLOW = "push-notification-batched"
EXPO_CREDENTIAL_PROVIDER = "expo"
CREDENTIAL_PROVIDERS: dict[str, str] = {"ios": "apns", "android": "fcm", "web": "web-push"}
logger = logging.getLogger(__name__)


def _push_payload(params: SendPushParams) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": params.title,
        "body": params.body,
        "data": params.data or {},
        "deepLink": params.deep_link,
        "type": params.type,
        "badge": params.badge,
        "sound": params.sound,
        "imageUrl": params.image_url,
    }
    return {key: value for key, value in payload.items() if value is not None}


class NovuPushProvider:
    name = "novu"

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self._owns_client = client is None
        self._secret_key = ""
        self._initialized = False

    async def initialize(self, config: PushProviderConfig) -> None:
        if self._initialized:
            return
        if not config.api_key:
            raise PushProviderError("Novu secret key not configured")

        self._secret_key = config.api_key
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=config.base_url or DEFAULT_NOVU_BASE_URL,
                timeout=config.timeout_seconds,
            )
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
        self._initialized = False

    def _require_client(self) -> httpx.AsyncClient:
        if not self._initialized or self._client is None:
            raise PushProviderNotInitializedError(
                "NovuPushProvider is not initialized; call initialize() first"
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        client = self._require_client()
        try:
            response = await client.request(
                method,
                path,
                json=payload,
                headers={"Authorization": f"ApiKey {self._secret_key}"},
            )
        except httpx.HTTPError as exc:
            raise PushProviderError(f"Novu request failed: {exc}") from exc
        if response.is_error:
            raise PushProviderError(
                f"Novu API error ({response.status_code}): {response.text}"
            )
        return response

    async def _trigger(
        self,
        workflow: str,
        subscriber_id: str,
        payload: dict[str, Any],
    ) -> str | None:
        response = await self._request(
            "POST",
            TRIGGER_PATH,
            {
                "name": workflow,
                "to": {"subscriberId": subscriber_id},
                "payload": payload,
            },
        )
        body = response.json()
        data = body.get("data") if isinstance(body, dict) else None
        transaction_id = data.get("transactionId") if isinstance(data, dict) else None
        return str(transaction_id) if transaction_id else None

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        self._require_client()
        try:
            message_id = await self._trigger(
                PUSH_WORKFLOW, params.user_id, _push_payload(params)
            )
        except PushProviderError as exc:
            logger.warning(
                "Failed to send push notification",
                extra={"user_id": params.user_id},
                exc_info=exc,
            )
            return SendPushResult(message_id=None, success=False, error=str(exc))
        return SendPushResult(message_id=message_id, success=True)

    async def send_batched_push(
        self,
        user_id: str,
        notifications: list[SendPushParams],
    ) -> SendPushResult:
        self._require_client()
        if not notifications:
            return SendPushResult(message_id=None, success=True)

        summary = summarize_batch(notifications)
        payload = {
            "count": summary.count,
            "title": summary.title,
            "body": summary.body,
            "type": summary.type,
            "notifications": [
                {
                    "title": item.title,
                    "body": item.body,
                    "type": item.type,
                    "deepLink": item.deep_link,
                    "data": item.data,
                }
                for item in notifications
            ],
        }
        try:
            message_id = await self._trigger(BATCHED_PUSH_WORKFLOW, user_id, payload)
        except PushProviderError as exc:
            logger.warning(
                "Failed to send batched push notification",
                extra={"user_id": user_id, "count": summary.count},
                exc_info=exc,
            )
            return SendPushResult(message_id=None, success=False, error=str(exc))
        return SendPushResult(message_id=message_id, success=True)

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        """Create the subscriber, or refresh its profile when it exists."""
        payload: dict[str, Any] = {
            "subscriberId": info.user_id,
            "email": info.email,
            "firstName": info.first_name,
            "lastName": info.last_name,
            "phone": info.phone,
            "locale": info.locale,
            "avatar": info.avatar,
            "data": info.data,
        }
        await self._request(
            "POST",
            SUBSCRIBERS_PATH,
            {key: value for key, value in payload.items() if value is not None},
        )

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        if credentials.expo_push_token:
            provider_id = EXPO_CREDENTIAL_PROVIDER
            device_token = credentials.expo_push_token
        elif credentials.platform in ("ios", "android") and credentials.token:
            provider_id = CREDENTIAL_PROVIDERS[credentials.platform]
            device_token = credentials.token
        elif credentials.platform == "web" and credentials.web_push_subscription:
            # Browsers register through Novu's client SDK.
            return
        else:
            raise PushProviderError(
                f"Unsupported push credentials for platform {credentials.platform!r}"
            )

        await self._request(
            "PUT",
            f"{SUBSCRIBERS_PATH}/{quote(user_id, safe='')}/credentials",
            {
                "providerId": provider_id,
                "credentials": {"deviceTokens": [device_token]},
            },
        )

    async def remove_credentials(
        self,
        user_id: str,
        platform: PushPlatform,
        *,
        expo: bool = False,
    ) -> None:
        provider_id = EXPO_CREDENTIAL_PROVIDER if expo else CREDENTIAL_PROVIDERS[platform]
        await self._request(
            "DELETE",
            f"{SUBSCRIBERS_PATH}/{quote(user_id, safe='')}/credentials/{provider_id}",
        )
