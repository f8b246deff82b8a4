"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

POSTGRES_UNIQUE_VIOLATION = "23505"
SQLITE_UNIQUE_VIOLATION = "SQLITE_CONSTRAINT_UNIQUE"


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when an upsert lost a race against a concurrent insert."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == POSTGRES_UNIQUE_VIOLATION:
        return True
    if getattr(original, "sqlite_errorname", None) == SQLITE_UNIQUE_VIOLATION:
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


__all__ = ["is_unique_violation"]
