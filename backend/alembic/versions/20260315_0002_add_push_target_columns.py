"""Store push device registrations on notification targets."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20260315_0002"
down_revision: str | None = "20260301_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "notification_targets",
        sa.Column("novu_subscriber_id", sa.String(length=36), nullable=True),
    )
    op.add_column(
        "notification_targets",
        sa.Column("expo_push_token", sa.String(length=255), nullable=True),
    )
    op.add_column(
        "notification_targets",
        sa.Column("push_platform", sa.String(length=16), nullable=True),
    )
    op.create_index(
        "ix_notification_targets_novu_subscriber_id",
        "notification_targets",
        ["novu_subscriber_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_notification_targets_novu_subscriber_id",
        table_name="notification_targets",
    )
    with op.batch_alter_table("notification_targets") as batch_op:
        batch_op.drop_column("push_platform")
        batch_op.drop_column("expo_push_token")
        batch_op.drop_column("novu_subscriber_id")
