"""Typed SQLAlchemy expression helpers for SQLModel columns."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy.sql import ColumnElement


def eq(column: Any, value: Any) -> ColumnElement[bool]:
    """Typed equality expression helper."""
    return cast(ColumnElement[bool], column == value)


def is_null(column: Any) -> ColumnElement[bool]:
    """Typed ``IS NULL`` expression helper."""
    return cast(ColumnElement[bool], cast(Any, column).is_(None))


def asc(column: Any) -> Any:
    return cast(Any, column).asc()


def desc(column: Any) -> Any:
    """Typed descending ordering helper."""
    return cast(Any, column).desc()
