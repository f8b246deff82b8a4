"""Request middleware recording recipient presence."""

from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from services.notifications import ActivityTracker

from .deps import USER_ID_HEADER

DEFAULT_DEBOUNCE_SECONDS = 60
MAX_DEBOUNCE_ENTRIES = 10_000
logger = logging.getLogger(__name__)


class ActivityMiddleware(BaseHTTPMiddleware):
    """Marks the calling user active, at most once per debounce window.

    The tracker is read from ``app.state.activity_tracker`` on each request;
    without one the middleware is a pass-through. Tracking failures are
    logged and never fail the request.
    """

    def __init__(
        self,
        app: ASGIApp,
        debounce_seconds: int = DEFAULT_DEBOUNCE_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
        max_entries: int = MAX_DEBOUNCE_ENTRIES,
    ) -> None:
        super().__init__(app)
        self.debounce_seconds = max(debounce_seconds, 0)
        self.monotonic = monotonic
        self.max_entries = max(max_entries, 1)
        self._last_recorded: dict[str, float] = {}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        if request.scope["type"] != "http":
            return await call_next(request)

        tracker: ActivityTracker | None = getattr(request.app.state, "activity_tracker", None)
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if tracker is not None and user_id and self._should_record(user_id):
            try:
                await tracker.update_last_active(user_id)
            except Exception as exc:
                # The next request retries once the debounce entry is gone.
                self._last_recorded.pop(user_id, None)
                logger.warning(
                    "Failed to record user activity",
                    extra={"user_id": user_id},
                    exc_info=exc,
                )

        return await call_next(request)

    def _should_record(self, user_id: str) -> bool:
        now = self.monotonic()
        last_recorded = self._last_recorded.get(user_id)
        if last_recorded is not None and now - last_recorded < self.debounce_seconds:
            return False

        # Re-inserting keeps the dict ordered oldest recording first.
        self._last_recorded.pop(user_id, None)
        if len(self._last_recorded) >= self.max_entries:
            self._evict_expired(now)
        while len(self._last_recorded) >= self.max_entries:
            del self._last_recorded[next(iter(self._last_recorded))]
        self._last_recorded[user_id] = now
        return True

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, recorded_at in self._last_recorded.items()
            if now - recorded_at >= self.debounce_seconds
        ]
        for key in expired:
            del self._last_recorded[key]
