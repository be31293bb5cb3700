"""Add daily AI quota columns to profiles.

Profiles are provisioned by the app on sign-up; this only adds the
is_premium / ai_usage_count / ai_usage_date fields the quota gate needs.
Creates a minimal profiles table when none exists (local SQLite).

Revision ID: ai_quota_001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "ai_quota_001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


QUOTA_COLUMNS = ("is_premium", "ai_usage_count", "ai_usage_date")


def _quota_columns() -> list[sa.Column]:
    return [
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ai_usage_date", sa.Date(), nullable=True),
    ]


def upgrade() -> None:
    """Add quota columns (or create profiles with them)."""
    inspector = sa.inspect(op.get_bind())

    if not inspector.has_table("profiles"):
        op.create_table(
            "profiles",
            sa.Column("id", sa.String(255), primary_key=True),
            *_quota_columns(),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
            sa.CheckConstraint(
                "ai_usage_count >= 0", name="ck_profiles_ai_usage_count_non_negative"
            ),
        )
        return

    existing = {column["name"] for column in inspector.get_columns("profiles")}
    with op.batch_alter_table("profiles") as batch_op:
        for column in _quota_columns():
            if column.name not in existing:
                batch_op.add_column(column)
        batch_op.create_check_constraint(
            "ck_profiles_ai_usage_count_non_negative", "ai_usage_count >= 0"
        )


def downgrade() -> None:
    """Drop quota columns."""
    with op.batch_alter_table("profiles") as batch_op:
        batch_op.drop_constraint("ck_profiles_ai_usage_count_non_negative", type_="check")
        for name in reversed(QUOTA_COLUMNS):
            batch_op.drop_column(name)
