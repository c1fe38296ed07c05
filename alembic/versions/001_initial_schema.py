"""Initial schema — stock, distributors, SOTI mirror, assignments.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Distributors
    op.create_table(
        "distributors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), unique=True, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    # Devices (stock)
    op.create_table(
        "devices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("imei", sa.String(32), unique=True, nullable=False),
        sa.Column("model_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="NEW"),
        sa.Column("assigned_to", sa.String(200), nullable=True),
        sa.Column("ticket_id", sa.String(100), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_devices_status", "devices", ["status"])

    # SOTI MDM mirror
    op.create_table(
        "soti_devices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("imei", sa.String(32), nullable=False),
        sa.Column("device_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("assigned_user", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_soti_devices_imei", "soti_devices", ["imei"])

    # Assignments
    op.create_table(
        "assignments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("device_id", sa.String(36), sa.ForeignKey("devices.id"), nullable=False),
        sa.Column(
            "soti_device_id", sa.String(36), sa.ForeignKey("soti_devices.id"), nullable=True
        ),
        sa.Column(
            "distributor_id", sa.String(36), sa.ForeignKey("distributors.id"), nullable=True
        ),
        sa.Column("type", sa.String(20), nullable=False, server_default="ASSIGN"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("assignee_name", sa.String(200), nullable=False),
        sa.Column("assignee_phone", sa.String(50), nullable=True),
        sa.Column("assignee_email", sa.String(200), nullable=True),
        sa.Column("delivery_location", sa.Text, nullable=True),
        sa.Column("contact_details", sa.Text, nullable=True),
        sa.Column("shipping_voucher_id", sa.String(50), nullable=True),
        sa.Column("shipping_status", sa.String(20), nullable=True),
        sa.Column("shipping_notes", sa.Text, nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expects_return", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("return_device_imei", sa.String(32), nullable=True),
        sa.Column("return_status", sa.String(20), nullable=True),
        sa.Column("return_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("return_notes", sa.Text, nullable=True),
        sa.Column("closure_reason", sa.Text, nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_assignments_device", "assignments", ["device_id"])
    op.create_index("idx_assignments_status", "assignments", ["status"])
    op.create_index(
        "uq_assignments_device_active",
        "assignments",
        ["device_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_index("uq_assignments_device_active", table_name="assignments")
    op.drop_index("idx_assignments_status", table_name="assignments")
    op.drop_index("idx_assignments_device", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("idx_soti_devices_imei", table_name="soti_devices")
    op.drop_table("soti_devices")
    op.drop_index("idx_devices_status", table_name="devices")
    op.drop_table("devices")
    op.drop_table("distributors")
