"""SIM registry — carrier lines synced from the provider sheets.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sims",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("icc", sa.String(32), unique=True, nullable=False),
        sa.Column("ip", sa.String(45), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("distributor_id", sa.String(36), sa.ForeignKey("distributors.id"), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_sims_status", "sims", ["status"])
    op.create_index("idx_sims_provider", "sims", ["provider"])


def downgrade() -> None:
    op.drop_index("idx_sims_provider", table_name="sims")
    op.drop_index("idx_sims_status", table_name="sims")
    op.drop_table("sims")
