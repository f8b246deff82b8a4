"""Business logic services."""

from .clock import Clock, ensure_aware, utcnow

__all__ = ["Clock", "ensure_aware", "utcnow"]
