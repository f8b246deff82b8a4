"""Batch key derivation for collapsing bursts of similar notifications."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import NamedTuple, Protocol

from services.clock import utcnow

BATCH_WINDOW_SECONDS = 60
SYSTEM_BATCH_PREFIX = "system"
ACTOR_BATCH_PREFIX = "actor"


def batch_bucket(moment: datetime) -> int:
    return int(moment.timestamp()) // BATCH_WINDOW_SECONDS


def generate_batch_key(
    actor_user_id: str | None,
    notification_type: str,
    *,
    now: datetime | None = None,
) -> str:
    """Group notifications by actor, type and minute window.

    Actorless notifications get their own ``system`` namespace so they never
    share a key with an actor, whatever that actor's identifier looks like.
    """
    bucket = batch_bucket(now or utcnow())
    if not actor_user_id:
        return f"{SYSTEM_BATCH_PREFIX}:{notification_type}:{bucket}"
    return f"{ACTOR_BATCH_PREFIX}:{actor_user_id}:{notification_type}:{bucket}"


class BatchEntry(Protocol):
    title: str
    body: str
    type: str | None


class BatchSummary(NamedTuple):
    count: int
    title: str
    body: str
    type: str | None


def summarize_batch(entries: Sequence[BatchEntry]) -> BatchSummary:
    """Collapse a batch into one push title/body, led by its oldest entry."""
    if not entries:
        raise ValueError("cannot summarize an empty batch")

    first = entries[0]
    count = len(entries)
    if count == 1:
        return BatchSummary(count=1, title=first.title, body=first.body, type=first.type)
    return BatchSummary(
        count=count,
        title=f"You have {count} new notifications",
        body=f"{first.title} and {count - 1} more",
        type=first.type,
    )
