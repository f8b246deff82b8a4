"""Delivery decision engine: persist, then pick in-app, push or nothing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import Notification
from services.clock import Clock, utcnow

from .activity import ActivityTracker
from .batching import generate_batch_key
from .deliveries import log_delivery
from .inbox import create_inbox_entry, get_batched_notifications
from .preferences import get_preferences
from .push import PushProvider, SendPushParams, SendPushResult
from .schemas import NotificationContent, NotifyParams
from .types import (
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    STATUS_FAILED,
    STATUS_SENT,
    STATUS_SKIPPED,
    get_threshold_for_type,
)

OPTED_OUT_REASON = "User opted out"
NO_DELIVERY_METHOD_REASON = "No delivery method"
PROVIDER_REJECTED_REASON = "Push provider reported failure"
logger = logging.getLogger(__name__)


def _to_push_params(recipient_user_id: str, notification: Notification) -> SendPushParams:
    return SendPushParams(
        user_id=recipient_user_id,
        title=notification.title,
        body=notification.body,
        type=notification.type,
        deep_link=notification.deep_link or None,
        data=notification.data or None,
    )


class NotificationDispatcher:
    """Creates inbox entries and routes each one to a delivery channel.

    ``session_factory`` must be built with ``expire_on_commit=False``: the
    returned notification is read after its session has committed and closed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        push_provider: PushProvider,
        activity_tracker: ActivityTracker,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.push_provider = push_provider
        self.activity_tracker = activity_tracker
        self.clock = clock

    async def notify(self, params: NotifyParams) -> Notification:
        batch_key = generate_batch_key(params.actor_user_id, params.type, now=self.clock())

        async with self.session_factory() as session:
            notification = await create_inbox_entry(session, params, batch_key=batch_key)

            preferences = await get_preferences(
                session, params.recipient_user_id, params.tenant_id
            )
            if not preferences.in_app_enabled and not preferences.push_enabled:
                await log_delivery(
                    session,
                    notification.id,
                    CHANNEL_IN_APP,
                    STATUS_SKIPPED,
                    error=OPTED_OUT_REASON,
                )
                return notification

            threshold = get_threshold_for_type(params.type)
            active = await self.activity_tracker.is_active(params.recipient_user_id, threshold)

            if active and preferences.in_app_enabled:
                # The connected client renders the toast; only the choice is recorded.
                await log_delivery(session, notification.id, CHANNEL_IN_APP, STATUS_SENT)
            elif not active and preferences.push_enabled:
                await self._deliver_push(session, notification, batch_key)
            else:
                await log_delivery(
                    session,
                    notification.id,
                    CHANNEL_IN_APP,
                    STATUS_SKIPPED,
                    error=NO_DELIVERY_METHOD_REASON,
                )

        return notification

    async def notify_many(
        self,
        content: NotificationContent,
        recipient_user_ids: Sequence[str],
    ) -> list[Notification | BaseException]:
        """Fan ``notify`` out concurrently, one independent pipeline per recipient.

        Results keep recipient order. A recipient rejected by validation or
        whose inbox write failed yields its exception instead of a notification.
        """
        base_payload = content.model_dump()
        results = await asyncio.gather(
            *(
                self._notify_recipient(base_payload, recipient_user_id)
                for recipient_user_id in recipient_user_ids
            ),
            return_exceptions=True,
        )
        for recipient_user_id, result in zip(recipient_user_ids, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Notification fan-out failed for recipient",
                    extra={
                        "tenant_id": content.tenant_id,
                        "recipient_user_id": recipient_user_id,
                        "type": content.type,
                    },
                    exc_info=result,
                )
        return list(results)

    async def _notify_recipient(
        self,
        base_payload: dict[str, Any],
        recipient_user_id: str,
    ) -> Notification:
        params = NotifyParams.model_validate(
            {**base_payload, "recipient_user_id": recipient_user_id}
        )
        return await self.notify(params)

    async def _deliver_push(
        self,
        session: AsyncSession,
        notification: Notification,
        batch_key: str,
    ) -> None:
        recipient_user_id = notification.recipient_user_id
        batch = await get_batched_notifications(
            session,
            batch_key,
            recipient_user_id=recipient_user_id,
            tenant_id=notification.tenant_id,
        )

        result: SendPushResult
        try:
            if len(batch) > 1:
                result = await self.push_provider.send_batched_push(
                    recipient_user_id,
                    [_to_push_params(recipient_user_id, item) for item in batch],
                )
            else:
                result = await self.push_provider.send_push(
                    _to_push_params(recipient_user_id, notification)
                )
        except Exception as push_error:
            logger.warning(
                "Push delivery failed",
                extra={
                    "notification_id": notification.id,
                    "provider": self.push_provider.name,
                    "batch_size": len(batch),
                },
                exc_info=push_error,
            )
            await log_delivery(
                session,
                notification.id,
                CHANNEL_PUSH,
                STATUS_FAILED,
                error=str(push_error),
            )
            return

        if not result.success:
            logger.warning(
                "Push provider rejected delivery",
                extra={
                    "notification_id": notification.id,
                    "provider": self.push_provider.name,
                },
            )
            await log_delivery(
                session,
                notification.id,
                CHANNEL_PUSH,
                STATUS_FAILED,
                provider_message_id=result.message_id,
                error=result.error or PROVIDER_REJECTED_REASON,
            )
            return

        await log_delivery(
            session,
            notification.id,
            CHANNEL_PUSH,
            STATUS_SENT,
            provider_message_id=result.message_id,
        )
