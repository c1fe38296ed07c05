"""Assignment entity — one custody event of a device, from creation to closure."""

from dataclasses import dataclass
from datetime import datetime

from phonedesk.domain.value_objects.closure import ClosureRecord
from phonedesk.domain.value_objects.enums import (
    AssignmentStatus,
    AssignmentType,
    ReturnStatus,
    ShippingStatus,
)


@dataclass(frozen=True)
class AssignmentState:
    """Status and sub-states of an assignment at one point in time."""

    status: AssignmentStatus
    shipping_status: ShippingStatus | None = None
    return_status: ReturnStatus | None = None


@dataclass
class Assignment:
    id: str | None
    device_id: str
    assignee_name: str
    assignee_phone: str | None = None
    assignee_email: str | None = None
    delivery_location: str | None = None
    contact_details: str | None = None
    distributor_id: str | None = None
    soti_device_id: str | None = None
    type: AssignmentType = AssignmentType.ASSIGN
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    created_at: datetime | None = None

    # Shipping sub-state
    shipping_voucher_id: str | None = None
    shipping_status: ShippingStatus | None = None
    shipping_notes: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    # Return sub-state
    expects_return: bool = False
    return_device_imei: str | None = None
    return_status: ReturnStatus | None = None
    return_received_at: datetime | None = None
    return_notes: str | None = None

    # Closure
    closure_reason: str | None = None
    closed_at: datetime | None = None

    def is_active(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE

    def has_voucher(self) -> bool:
        return bool(self.shipping_voucher_id)

    def state(self) -> AssignmentState:
        return AssignmentState(self.status, self.shipping_status, self.return_status)

    @property
    def closure(self) -> ClosureRecord | None:
        return ClosureRecord.from_json(self.closure_reason)

    def invariant_violations(self) -> list[str]:
        """List the record-level invariants this assignment currently breaks."""
        violations = []
        if self.shipping_status is not None and not self.has_voucher():
            violations.append("shipping_status set without a shipping voucher")
        if self.return_status is not None and not self.expects_return:
            violations.append("return_status set on an assignment that expects no return")
        if (self.closed_at is not None) != (self.status == AssignmentStatus.COMPLETED):
            violations.append("closed_at must be set iff status is completed")
        return violations
