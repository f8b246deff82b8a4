"""Tests for the shared SQL expression helpers."""

from sqlalchemy import select

from models import Notification, Subscription
from services import query
from services.notifications import inbox
from services.subscriptions import entitlements


def compiled(statement) -> str:
    return " ".join(str(statement).split())


def test_helpers_build_expected_clauses() -> None:
    statement = (
        select(Notification)
        .where(
            query.eq(Notification.tenant_id, "tenant-1"),
            query.is_null(Notification.read_at),
        )
        .order_by(query.desc(Notification.created_at), query.asc(Notification.id))
    )

    sql = compiled(statement)
    assert "notifications.tenant_id = :tenant_id_1" in sql
    assert "notifications.read_at IS NULL" in sql
    assert "ORDER BY notifications.created_at DESC, notifications.id ASC" in sql


def test_service_packages_share_helpers() -> None:
    assert inbox.eq is query.eq
    assert entitlements.eq is query.eq
    assert entitlements.desc is query.desc

    sql = compiled(
        select(Subscription)
        .where(entitlements.eq(Subscription.tenant_id, "tenant-1"))
        .order_by(entitlements.desc(Subscription.updated_at))
    )
    assert "subscriptions.tenant_id = :tenant_id_1" in sql
    assert "ORDER BY subscriptions.updated_at DESC" in sql
