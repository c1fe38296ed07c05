"""LifecyclePolicy — transitions of the assignment state machine.

Pure functions: each checks the preconditions of one transition against the
current assignment, raises a domain error if they do not hold, and otherwise
mutates the assignment in place. Persistence is the caller's job.

States: ``active`` → ``completed`` (terminal). Shipping
(pending → shipped → delivered) and return (pending → received) are
orthogonal sub-states that only move while the assignment is active.
"""

from __future__ import annotations

from datetime import datetime

from phonedesk.domain.entities.assignment import Assignment
from phonedesk.domain.errors import InvalidStateError, ValidationError
from phonedesk.domain.value_objects.closure import (
    ClosureRecord,
    carried_extensions,
    parse_closure_payload,
)
from phonedesk.domain.value_objects.enums import (
    RELEASABLE_STATUSES,
    AssignmentStatus,
    DeviceStatus,
    ReturnStatus,
    ShippingStatus,
)


def _require_active(assignment: Assignment, action: str) -> None:
    if not assignment.is_active():
        raise InvalidStateError(
            f"Only active assignments can {action} (current status: {assignment.status.value})"
        )


def _require_voucher(assignment: Assignment) -> None:
    if not assignment.has_voucher():
        raise InvalidStateError("Assignment has no shipping voucher")


def _apply_delivery(assignment: Assignment, now: datetime) -> None:
    """Stamp delivery, backfill shipped_at and open the return sub-state."""
    assignment.shipping_status = ShippingStatus.DELIVERED
    if assignment.delivered_at is None:
        assignment.delivered_at = now
    if assignment.shipped_at is None:
        assignment.shipped_at = now
    if assignment.expects_return and assignment.return_status is None:
        assignment.return_status = ReturnStatus.PENDING


def start_shipping(assignment: Assignment, now: datetime) -> None:
    """pending (or unset) → shipped."""
    _require_active(assignment, "start shipping")
    _require_voucher(assignment)
    if assignment.shipping_status not in (None, ShippingStatus.PENDING):
        raise InvalidStateError(
            f'Shipment is already "{assignment.shipping_status.value}"'
        )

    assignment.shipping_status = ShippingStatus.SHIPPED
    if assignment.shipped_at is None:
        assignment.shipped_at = now


def mark_delivered(assignment: Assignment, now: datetime) -> None:
    """shipped → delivered.

    Calling it twice fails the second time: the sub-state is no longer
    ``shipped``.
    """
    _require_active(assignment, "finish shipping")
    _require_voucher(assignment)
    if assignment.shipping_status != ShippingStatus.SHIPPED:
        raise InvalidStateError('Shipment must be "shipped" to be marked as delivered')

    _apply_delivery(assignment, now)


def update_shipping(
    assignment: Assignment,
    new_status: ShippingStatus,
    notes: str | None,
    now: datetime,
) -> None:
    """Set any shipping sub-state directly.

    Existing ``shipped_at`` / ``delivered_at`` timestamps are never
    overwritten.
    """
    _require_active(assignment, "update shipping")
    _require_voucher(assignment)

    assignment.shipping_notes = notes or None
    if new_status == ShippingStatus.DELIVERED:
        _apply_delivery(assignment, now)
        return

    assignment.shipping_status = new_status
    if new_status == ShippingStatus.SHIPPED and assignment.shipped_at is None:
        assignment.shipped_at = now


def register_return(
    assignment: Assignment,
    received: bool,
    notes: str | None,
    now: datetime,
) -> bool:
    """Record the return of the replaced device.

    Returns:
        True when the returned device must now be released in the registry.
    """
    _require_active(assignment, "register a return")
    if not assignment.expects_return:
        raise InvalidStateError("Assignment does not expect a device return")
    if assignment.return_status == ReturnStatus.RECEIVED:
        raise InvalidStateError("Return was already registered")

    assignment.return_notes = notes or None
    if received:
        assignment.return_status = ReturnStatus.RECEIVED
        assignment.return_received_at = now
    else:
        assignment.return_status = ReturnStatus.PENDING
        assignment.return_received_at = None

    return received and bool(assignment.return_device_imei)


def close(
    assignment: Assignment,
    reason: str | None,
    resulting_device_status: DeviceStatus,
    now: datetime,
) -> ClosureRecord:
    """active → completed.

    The closure metadata replaces any previously stored content; unknown keys
    of that content are carried in ``extensions``.

    Raises:
        ValidationError: resulting status is not one a device can be released into.
        InvalidStateError: assignment is not active.
    """
    if resulting_device_status not in RELEASABLE_STATUSES:
        allowed = ", ".join(sorted(s.value for s in RELEASABLE_STATUSES))
        raise ValidationError(
            f"Invalid resulting device status {resulting_device_status.value}; expected one of {allowed}"
        )
    _require_active(assignment, "be closed")

    record = ClosureRecord(
        reason=(reason or "").strip() or None,
        resulting_device_status=resulting_device_status,
        closed_at=now,
        extensions=carried_extensions(parse_closure_payload(assignment.closure_reason)),
    )
    assignment.status = AssignmentStatus.COMPLETED
    assignment.closed_at = now
    assignment.closure_reason = record.to_json()
    return record
