"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- tracker_snapshots ---
    op.create_table(
        "tracker_snapshots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner", sa.String(128), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("last_modified", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tracker_snapshots_id", "tracker_snapshots", ["id"])
    op.create_index("ix_tracker_snapshots_owner", "tracker_snapshots", ["owner"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_tracker_snapshots_owner", table_name="tracker_snapshots")
    op.drop_index("ix_tracker_snapshots_id", table_name="tracker_snapshots")
    op.drop_table("tracker_snapshots")
