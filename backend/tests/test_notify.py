"""Tests for the notification delivery decision engine."""

from typing import Any

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Notification, NotificationDelivery
from services.notifications import dispatcher as dispatcher_module
from services.notifications import (
    NO_DELIVERY_METHOD_REASON,
    OPTED_OUT_REASON,
    NotificationContent,
    NotificationDispatcher,
    NotifyParams,
    list_deliveries,
    upsert_preferences,
)
from services.notifications.push import NoOpPushProvider, PushProviderConfig

TENANT_ID = "tenant-1"
RECIPIENT_ID = "recipient-1"


def make_params(**overrides: Any) -> NotifyParams:
    payload: dict[str, Any] = {
        "tenant_id": TENANT_ID,
        "recipient_user_id": RECIPIENT_ID,
        "type": "welcome",
        "title": "Welcome aboard",
        "body": "Your workspace is ready.",
    }
    payload.update(overrides)
    return NotifyParams(**payload)


@pytest.mark.asyncio
async def test_notify_persists_inbox_entry_before_delivery(
    dispatcher: NotificationDispatcher,
    db_session: AsyncSession,
) -> None:
    notification = await dispatcher.notify(
        make_params(deep_link="/todos/1", data={"todo_id": 1})
    )

    stored = await db_session.get(Notification, notification.id)
    assert stored is not None
    assert stored.tenant_id == TENANT_ID
    assert stored.recipient_user_id == RECIPIENT_ID
    assert stored.type == "welcome"
    assert stored.title == "Welcome aboard"
    assert stored.body == "Your workspace is ready."
    assert stored.data == {"todo_id": 1}
    assert stored.created_at is not None
    assert stored.read_at is None
    assert stored.archived_at is None
    assert stored.batch_key is not None
    assert stored.batch_key.startswith("system:welcome:")


@pytest.mark.asyncio
async def test_inactive_recipient_with_defaults_gets_push(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    notification = await dispatcher.notify(make_params())

    assert len(push_provider.sent) == 1
    assert push_provider.sent[0].user_id == RECIPIENT_ID
    assert push_provider.sent[0].title == "Welcome aboard"
    assert push_provider.batched == []

    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status) for row in deliveries] == [("push", "sent")]
    assert deliveries[0].provider_message_id == "fake_1"


@pytest.mark.asyncio
async def test_active_recipient_gets_in_app_only(
    dispatcher: NotificationDispatcher,
    activity_tracker,
    push_provider,
    db_session: AsyncSession,
) -> None:
    await activity_tracker.update_last_active(RECIPIENT_ID)

    notification = await dispatcher.notify(make_params())

    assert push_provider.sent == []
    assert push_provider.batched == []
    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status) for row in deliveries] == [("in_app", "sent")]


@pytest.mark.asyncio
async def test_fully_opted_out_recipient_is_skipped(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    await upsert_preferences(
        db_session,
        RECIPIENT_ID,
        TENANT_ID,
        in_app_enabled=False,
        push_enabled=False,
    )

    notification = await dispatcher.notify(make_params())

    assert push_provider.sent == []
    assert push_provider.batched == []
    deliveries = await list_deliveries(db_session, notification.id)
    assert len(deliveries) == 1
    assert deliveries[0].channel == "in_app"
    assert deliveries[0].status == "skipped"
    assert deliveries[0].error == OPTED_OUT_REASON


@pytest.mark.asyncio
async def test_opt_out_still_keeps_inbox_entry(
    dispatcher: NotificationDispatcher,
    db_session: AsyncSession,
) -> None:
    await upsert_preferences(
        db_session, RECIPIENT_ID, None, in_app_enabled=False, push_enabled=False
    )

    notification = await dispatcher.notify(make_params())

    assert await db_session.get(Notification, notification.id) is not None


@pytest.mark.asyncio
async def test_active_recipient_without_in_app_has_no_delivery_method(
    dispatcher: NotificationDispatcher,
    activity_tracker,
    push_provider,
    db_session: AsyncSession,
) -> None:
    await upsert_preferences(db_session, RECIPIENT_ID, TENANT_ID, in_app_enabled=False)
    await activity_tracker.update_last_active(RECIPIENT_ID)

    notification = await dispatcher.notify(make_params())

    assert push_provider.sent == []
    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status, row.error) for row in deliveries] == [
        ("in_app", "skipped", NO_DELIVERY_METHOD_REASON)
    ]


@pytest.mark.asyncio
async def test_inactive_recipient_without_push_has_no_delivery_method(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    await upsert_preferences(db_session, RECIPIENT_ID, TENANT_ID, push_enabled=False)

    notification = await dispatcher.notify(make_params())

    assert push_provider.sent == []
    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status, row.error) for row in deliveries] == [
        ("in_app", "skipped", NO_DELIVERY_METHOD_REASON)
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("notification_type", "threshold"),
    [("todo_nudge", 60), ("direct_message", 300), ("welcome", 120)],
)
async def test_activity_threshold_follows_notification_type(
    dispatcher: NotificationDispatcher,
    activity_tracker,
    clock,
    push_provider,
    db_session: AsyncSession,
    notification_type: str,
    threshold: int,
) -> None:
    await activity_tracker.update_last_active(RECIPIENT_ID)

    clock.advance(threshold - 1)
    just_inside = await dispatcher.notify(make_params(type=notification_type))
    clock.advance(1)
    on_boundary = await dispatcher.notify(make_params(type=notification_type))
    clock.advance(1)
    just_outside = await dispatcher.notify(make_params(type=notification_type))

    inside_rows = await list_deliveries(db_session, just_inside.id)
    boundary_rows = await list_deliveries(db_session, on_boundary.id)
    outside_rows = await list_deliveries(db_session, just_outside.id)
    assert [(row.channel, row.status) for row in inside_rows] == [("in_app", "sent")]
    assert [(row.channel, row.status) for row in boundary_rows] == [("in_app", "sent")]
    assert [row.channel for row in outside_rows] == ["push"]


@pytest.mark.asyncio
async def test_notify_never_logs_in_app_and_push_sent_together(
    dispatcher: NotificationDispatcher,
    activity_tracker,
    clock,
    db_session: AsyncSession,
) -> None:
    created = [await dispatcher.notify(make_params())]
    await activity_tracker.update_last_active(RECIPIENT_ID)
    created.append(await dispatcher.notify(make_params()))
    clock.advance(600)
    created.append(await dispatcher.notify(make_params()))

    for notification in created:
        rows = await list_deliveries(db_session, notification.id)
        sent_channels = {row.channel for row in rows if row.status == "sent"}
        assert len(sent_channels) <= 1
        assert len(rows) == 1


@pytest.mark.asyncio
async def test_push_exception_is_logged_as_failed(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    push_provider.raise_error = RuntimeError("vendor down")

    notification = await dispatcher.notify(make_params())

    assert notification.id is not None
    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status) for row in deliveries] == [("push", "failed")]
    assert deliveries[0].error == "vendor down"


@pytest.mark.asyncio
async def test_push_rejection_is_logged_as_failed(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    push_provider.fail_with = "invalid subscriber"

    notification = await dispatcher.notify(make_params())

    deliveries = await list_deliveries(db_session, notification.id)
    assert [(row.channel, row.status, row.error) for row in deliveries] == [
        ("push", "failed", "invalid subscriber")
    ]


@pytest.mark.asyncio
async def test_burst_from_same_actor_is_pushed_as_one_batch(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
) -> None:
    created = []
    for index in range(3):
        created.append(
            await dispatcher.notify(
                make_params(
                    type="kudos_sent",
                    actor_user_id="actor-1",
                    title=f"Kudos {index + 1}",
                )
            )
        )

    assert len({item.batch_key for item in created}) == 1
    assert len(push_provider.sent) == 1
    assert len(push_provider.batched) == 2

    user_id, batch = push_provider.batched[-1]
    assert user_id == RECIPIENT_ID
    assert [item.title for item in batch] == ["Kudos 1", "Kudos 2", "Kudos 3"]

    third_rows = await list_deliveries(db_session, created[2].id)
    assert [(row.channel, row.status, row.provider_message_id) for row in third_rows] == [
        ("push", "sent", "fake_batch_2")
    ]


@pytest.mark.asyncio
async def test_batches_do_not_cross_window_or_actor(
    dispatcher: NotificationDispatcher,
    push_provider,
    clock,
) -> None:
    await dispatcher.notify(make_params(type="kudos_sent", actor_user_id="actor-1"))
    await dispatcher.notify(make_params(type="kudos_sent", actor_user_id="actor-2"))
    clock.advance(60)
    await dispatcher.notify(make_params(type="kudos_sent", actor_user_id="actor-1"))

    assert len(push_provider.sent) == 3
    assert push_provider.batched == []


@pytest.mark.asyncio
async def test_notify_many_creates_one_entry_per_recipient(
    dispatcher: NotificationDispatcher,
    db_session: AsyncSession,
) -> None:
    content = NotificationContent(
        tenant_id=TENANT_ID,
        type="event_created",
        title="Team offsite",
        body="Friday at noon",
        actor_user_id="organizer",
    )

    results = await dispatcher.notify_many(content, ["r1", "r2", "r3"])

    assert [getattr(item, "recipient_user_id", None) for item in results] == ["r1", "r2", "r3"]
    count_result = await db_session.execute(select(func.count()).select_from(Notification))
    assert count_result.scalar_one() == 3


@pytest.mark.asyncio
async def test_notify_many_isolates_failing_recipient(
    dispatcher: NotificationDispatcher,
    db_session: AsyncSession,
) -> None:
    content = NotificationContent(
        tenant_id=TENANT_ID,
        type="member_joined",
        title="New member",
        body="Say hello",
    )

    results = await dispatcher.notify_many(content, ["r1", "x" * 64, "r3"])

    assert isinstance(results[0], Notification)
    assert isinstance(results[1], ValidationError)
    assert isinstance(results[2], Notification)
    deliveries = await db_session.execute(
        select(func.count()).select_from(NotificationDelivery)
    )
    assert deliveries.scalar_one() == 2


def locked_database_error() -> OperationalError:
    return OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))


async def delivery_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(NotificationDelivery))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_inbox_write_failure_propagates_without_delivery(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    preference_reads: list[str] = []

    async def failing_create_inbox_entry(*args: Any, **kwargs: Any) -> Notification:
        raise locked_database_error()

    async def recording_get_preferences(session, user_id, tenant_id):
        preference_reads.append(user_id)
        raise AssertionError("preferences must not be read after a failed inbox write")

    monkeypatch.setattr(dispatcher_module, "create_inbox_entry", failing_create_inbox_entry)
    monkeypatch.setattr(dispatcher_module, "get_preferences", recording_get_preferences)

    with pytest.raises(OperationalError):
        await dispatcher.notify(make_params())

    assert preference_reads == []
    assert push_provider.sent == []
    assert push_provider.batched == []
    assert await delivery_count(db_session) == 0


@pytest.mark.asyncio
async def test_notify_many_continues_past_failed_inbox_write(
    dispatcher: NotificationDispatcher,
    push_provider,
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    real_create_inbox_entry = dispatcher_module.create_inbox_entry

    async def create_inbox_entry_failing_for_r2(session, params, **kwargs):
        if params.recipient_user_id == "r2":
            raise locked_database_error()
        return await real_create_inbox_entry(session, params, **kwargs)

    monkeypatch.setattr(
        dispatcher_module, "create_inbox_entry", create_inbox_entry_failing_for_r2
    )
    content = NotificationContent(
        tenant_id=TENANT_ID,
        type="survey_created",
        title="Quick survey",
        body="Two questions",
    )

    results = await dispatcher.notify_many(content, ["r1", "r2", "r3"])

    assert isinstance(results[0], Notification)
    assert isinstance(results[1], OperationalError)
    assert isinstance(results[2], Notification)
    assert sorted(params.user_id for params in push_provider.sent) == ["r1", "r3"]
    stored = await db_session.execute(select(Notification.recipient_user_id))
    assert sorted(stored.scalars().all()) == ["r1", "r3"]
    assert await delivery_count(db_session) == 2


@pytest.mark.asyncio
async def test_noop_provider_drops_into_dispatcher(
    session_maker,
    activity_tracker,
    clock,
    db_session: AsyncSession,
) -> None:
    provider = NoOpPushProvider()
    await provider.initialize(PushProviderConfig())
    noop_dispatcher = NotificationDispatcher(
        session_maker,
        provider,
        activity_tracker,
        clock=clock,
    )

    notifications = [
        await noop_dispatcher.notify(make_params(type=notification_type))
        for notification_type in ("welcome", "todo_assigned", "kudos_sent")
    ]

    outcomes = []
    for notification in notifications:
        deliveries = await list_deliveries(db_session, notification.id)
        outcomes.extend((row.channel, row.status) for row in deliveries)
        assert deliveries[0].provider_message_id is not None
        assert deliveries[0].provider_message_id.startswith("noop_")
    assert outcomes == [("push", "sent")] * 3
