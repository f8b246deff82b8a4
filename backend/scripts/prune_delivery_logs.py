"""Maintenance script to prune old notification delivery log rows.

Usage:
    uv run python scripts/prune_delivery_logs.py

Environment overrides:
    DELIVERY_LOG_RETENTION_DAYS=90
    DELIVERY_LOG_PRUNE_BATCH_SIZE=1000
    DELIVERY_LOG_MAX_ROWS_PER_RUN=50000
    DELIVERY_LOG_MAX_ELAPSED_SECONDS=60
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from time import perf_counter

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from services.clock import utcnow  # noqa: E402
from services.notifications import prune_deliveries_before  # noqa: E402

RETENTION_DAYS_ENV = "DELIVERY_LOG_RETENTION_DAYS"
PRUNE_BATCH_SIZE_ENV = "DELIVERY_LOG_PRUNE_BATCH_SIZE"
MAX_ROWS_PER_RUN_ENV = "DELIVERY_LOG_MAX_ROWS_PER_RUN"
MAX_ELAPSED_SECONDS_ENV = "DELIVERY_LOG_MAX_ELAPSED_SECONDS"
DEFAULT_PRUNE_BATCH_SIZE = 1000
DEFAULT_MAX_ROWS_PER_RUN = 50_000
DEFAULT_MAX_ELAPSED_SECONDS = 60

logger = logging.getLogger("scripts.prune_delivery_logs")


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def retention_cutoff(retention_days: int, *, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(days=retention_days)


async def _prune_batch(cutoff: datetime, *, batch_size: int) -> int:
    async with AsyncSessionMaker() as session:
        return await prune_deliveries_before(session, cutoff, batch_size=batch_size)


async def run() -> None:
    retention_days = _parse_positive_int(
        os.getenv(RETENTION_DAYS_ENV),
        default=settings.delivery_log_retention_days,
        label=RETENTION_DAYS_ENV,
    )
    batch_size = _parse_positive_int(
        os.getenv(PRUNE_BATCH_SIZE_ENV),
        default=DEFAULT_PRUNE_BATCH_SIZE,
        label=PRUNE_BATCH_SIZE_ENV,
    )
    max_rows_per_run = _parse_positive_int(
        os.getenv(MAX_ROWS_PER_RUN_ENV),
        default=DEFAULT_MAX_ROWS_PER_RUN,
        label=MAX_ROWS_PER_RUN_ENV,
    )
    max_elapsed_seconds = _parse_positive_int(
        os.getenv(MAX_ELAPSED_SECONDS_ENV),
        default=DEFAULT_MAX_ELAPSED_SECONDS,
        label=MAX_ELAPSED_SECONDS_ENV,
    )

    cutoff = retention_cutoff(retention_days)
    started_at = perf_counter()
    rows_deleted = 0
    batches = 0
    stop_reason = "completed"

    while True:
        if rows_deleted >= max_rows_per_run:
            stop_reason = "max_rows"
            break
        if perf_counter() - started_at >= max_elapsed_seconds:
            stop_reason = "max_elapsed_seconds"
            break

        deleted = await _prune_batch(
            cutoff,
            batch_size=min(batch_size, max_rows_per_run - rows_deleted),
        )
        if deleted == 0:
            break
        batches += 1
        rows_deleted += deleted

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    logger.info(
        "Delivery log prune complete: rows_deleted=%s, batches=%s, elapsed_ms=%s, "
        "stop_reason=%s",
        rows_deleted,
        batches,
        elapsed_ms,
        stop_reason,
        extra={"cutoff": cutoff.isoformat(), "retention_days": retention_days},
    )


def main() -> None:
    configure_logging(settings.log_level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
