"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phonedesk.adapters.persistence.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class DistributorModel(Base):
    __tablename__ = "distributors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    assignments: Mapped[list["AssignmentModel"]] = relationship(back_populates="distributor")


class DeviceModel(Base):
    __tablename__ = "devices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    imei: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    model_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="NEW")
    assigned_to: Mapped[str | None] = mapped_column(String(200), nullable=True)
    ticket_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    assignments: Mapped[list["AssignmentModel"]] = relationship(back_populates="device")

    __table_args__ = (Index("idx_devices_status", "status"),)


class SotiDeviceModel(Base):
    __tablename__ = "soti_devices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    imei: Mapped[str] = mapped_column(String(32), nullable=False)
    device_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assigned_user: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_soti_devices_imei", "imei"),)


class AssignmentModel(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    device_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("devices.id"), nullable=False
    )
    soti_device_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("soti_devices.id"), nullable=True
    )
    distributor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("distributors.id"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="ASSIGN")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    assignee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    assignee_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    assignee_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    delivery_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    shipping_voucher_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shipping_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    shipping_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    expects_return: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    return_device_imei: Mapped[str | None] = mapped_column(String(32), nullable=True)
    return_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    return_received_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    return_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Serialized closure record (JSON text)
    closure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    device: Mapped["DeviceModel"] = relationship(back_populates="assignments")
    distributor: Mapped["DistributorModel | None"] = relationship(back_populates="assignments")

    __table_args__ = (
        Index("idx_assignments_device", "device_id"),
        Index("idx_assignments_status", "status"),
        # At most one active assignment per device
        Index(
            "uq_assignments_device_active",
            "device_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )


class SimModel(Base):
    __tablename__ = "sims"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    icc: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    distributor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("distributors.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_sync: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    distributor: Mapped["DistributorModel | None"] = relationship(lazy="joined")

    __table_args__ = (
        Index("idx_sims_status", "status"),
        Index("idx_sims_provider", "provider"),
    )
