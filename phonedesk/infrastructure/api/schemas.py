"""Request bodies. Validation failures are answered with 400 before any store access."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictBool, field_validator

from phonedesk.adapters.csv_loader.normalizer import normalize_device_status, normalize_imei
from phonedesk.domain.value_objects.enums import (
    RELEASABLE_STATUSES,
    AssignmentType,
    DeviceStatus,
    ShippingStatus,
)


class DeviceCreate(BaseModel):
    imei: str = Field(min_length=1, max_length=32)
    model_name: str | None = Field(default=None, max_length=200)
    status: DeviceStatus = DeviceStatus.NEW
    ticket_id: str | None = None

    @field_validator("imei")
    @classmethod
    def _digits_only(cls, v: str) -> str:
        imei = normalize_imei(v)
        if imei is None:
            raise ValueError("IMEI must contain digits")
        return imei

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v):
        if isinstance(v, str):
            normalized = normalize_device_status(v)
            if normalized is None:
                raise ValueError(f"Unknown device status {v!r}")
            v = normalized
        if v == DeviceStatus.ASSIGNED:
            raise ValueError("Devices become ASSIGNED only through an assignment")
        return v


class DistributorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class AssignmentCreate(BaseModel):
    device_id: str = Field(min_length=1)
    assignee_name: str = Field(min_length=1, max_length=200)
    assignee_phone: str = Field(min_length=1, max_length=50)
    assignee_email: str | None = Field(default=None, max_length=200)
    delivery_location: str = Field(min_length=1)
    contact_details: str | None = None
    distributor_id: str | None = None
    soti_device_id: str | None = None
    type: AssignmentType = AssignmentType.ASSIGN
    generate_voucher: StrictBool = False
    expects_return: StrictBool = False
    return_device_imei: str | None = None


class ShippingUpdate(BaseModel):
    shipping_status: ShippingStatus
    shipping_notes: str | None = None


class ReturnRegistration(BaseModel):
    return_received: StrictBool
    return_notes: str | None = None


class CloseRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)
    resulting_device_status: DeviceStatus = DeviceStatus.USED

    @field_validator("resulting_device_status")
    @classmethod
    def _releasable(cls, v: DeviceStatus) -> DeviceStatus:
        if v not in RELEASABLE_STATUSES:
            allowed = ", ".join(sorted(s.value for s in RELEASABLE_STATUSES))
            raise ValueError(f"must be one of {allowed}")
        return v
