"""Tests for batch key derivation and batch summaries."""

from datetime import datetime, timezone

import pytest

from services.notifications import generate_batch_key, get_threshold_for_type, summarize_batch
from services.notifications.batching import batch_bucket
from services.notifications.push import SendPushParams

MINUTE_START = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


def test_batch_key_is_stable_within_a_minute() -> None:
    early = generate_batch_key("actor-1", "kudos_sent", now=MINUTE_START)
    late = generate_batch_key(
        "actor-1", "kudos_sent", now=MINUTE_START.replace(second=59, microsecond=999999)
    )

    assert early == late
    assert early == f"actor:actor-1:kudos_sent:{batch_bucket(MINUTE_START)}"


def test_batch_key_changes_with_minute_actor_and_type() -> None:
    base = generate_batch_key("actor-1", "kudos_sent", now=MINUTE_START)

    assert base != generate_batch_key(
        "actor-1", "kudos_sent", now=MINUTE_START.replace(minute=1)
    )
    assert base != generate_batch_key("actor-2", "kudos_sent", now=MINUTE_START)
    assert base != generate_batch_key("actor-1", "milestone", now=MINUTE_START)


def test_actorless_keys_never_collide_with_actor_keys() -> None:
    system_key = generate_batch_key(None, "limit_alert", now=MINUTE_START)

    assert system_key.startswith("system:limit_alert:")
    assert system_key != generate_batch_key("system", "limit_alert", now=MINUTE_START)
    assert generate_batch_key("", "limit_alert", now=MINUTE_START) == system_key


def test_summary_of_single_entry_keeps_its_text() -> None:
    summary = summarize_batch(
        [SendPushParams(user_id="u", title="Hi", body="There", type="kudos_sent")]
    )

    assert summary.count == 1
    assert summary.title == "Hi"
    assert summary.body == "There"
    assert summary.type == "kudos_sent"


def test_summary_of_many_entries_leads_with_first() -> None:
    entries = [
        SendPushParams(user_id="u", title=f"Task {index}", body="", type="todo_assigned")
        for index in range(1, 4)
    ]

    summary = summarize_batch(entries)

    assert summary.count == 3
    assert summary.title == "You have 3 new notifications"
    assert summary.body == "Task 1 and 2 more"
    assert summary.type == "todo_assigned"


def test_summary_rejects_empty_batch() -> None:
    with pytest.raises(ValueError):
        summarize_batch([])


@pytest.mark.parametrize(
    ("notification_type", "expected"),
    [
        ("direct_message", 300),
        ("todo_nudge", 60),
        ("todo_completed", 180),
        ("member_invited", 120),
        ("something_new", 120),
    ],
)
def test_threshold_lookup(notification_type: str, expected: int) -> None:
    assert get_threshold_for_type(notification_type) == expected
