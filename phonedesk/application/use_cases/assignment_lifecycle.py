"""AssignmentLifecycleUseCase — shipping, return and closure of assignments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

from phonedesk.application.ports.assignment_repo import AssignmentRepository
from phonedesk.application.ports.device_repo import DeviceRepository
from phonedesk.application.ports.soti_device_repo import SotiDeviceRepository
from phonedesk.application.ports.unit_of_work import UnitOfWork
from phonedesk.domain.entities.assignment import Assignment, AssignmentState
from phonedesk.domain.errors import (
    DomainError,
    ErrorKind,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from phonedesk.domain.policies import lifecycle
from phonedesk.domain.value_objects.enums import (
    RELEASABLE_STATUSES,
    DeviceStatus,
    ShippingStatus,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LifecycleResult:
    """Outcome of one operation. Failures never escape as exceptions."""

    assignment_id: str | None
    success: bool
    message: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    data: dict | None = None

    @classmethod
    def failure(cls, assignment_id: str | None, error: DomainError) -> LifecycleResult:
        return cls(
            assignment_id=assignment_id,
            success=False,
            error=error.message,
            error_kind=error.kind,
        )


# (assignment, state read before the transition, now) -> (message, data)
_Transition = Callable[[Assignment, AssignmentState, datetime], Awaitable[tuple[str, dict | None]]]


class AssignmentLifecycleUseCase:
    """Runs each transition as one unit of work.

    The assignment write is a compare-and-swap on the status and sub-states
    read at the start; if a concurrent call got there first the whole
    operation rolls back.
    """

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        device_repo: DeviceRepository,
        uow: UnitOfWork,
        soti_repo: SotiDeviceRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._assignments = assignment_repo
        self._devices = device_repo
        self._uow = uow
        self._soti = soti_repo
        self._clock = clock

    # ─── Operations ──────────────────────────────────────────────────

    async def start_shipping(self, assignment_id: str) -> LifecycleResult:
        async def apply(assignment: Assignment, expected: AssignmentState, now: datetime):
            lifecycle.start_shipping(assignment, now)
            await self._write(assignment, expected)
            return "Shipping started", None

        return await self._run("start_shipping", assignment_id, "shipping -> shipped", apply)

    async def mark_delivered(self, assignment_id: str) -> LifecycleResult:
        async def apply(assignment: Assignment, expected: AssignmentState, now: datetime):
            lifecycle.mark_delivered(assignment, now)
            await self._write(assignment, expected)
            return "Shipment marked as delivered", None

        return await self._run("mark_delivered", assignment_id, "shipping -> delivered", apply)

    async def update_shipping(
        self,
        assignment_id: str,
        new_status: ShippingStatus,
        notes: str | None = None,
    ) -> LifecycleResult:
        async def apply(assignment: Assignment, expected: AssignmentState, now: datetime):
            lifecycle.update_shipping(assignment, new_status, notes, now)
            await self._write(assignment, expected)
            return f'Shipping status updated to "{new_status.value}"', None

        return await self._run(
            "update_shipping", assignment_id, f"shipping -> {new_status.value}", apply
        )

    async def register_return(
        self,
        assignment_id: str,
        received: bool,
        notes: str | None = None,
    ) -> LifecycleResult:
        async def apply(assignment: Assignment, expected: AssignmentState, now: datetime):
            release_device = lifecycle.register_return(assignment, received, notes, now)
            await self._write(assignment, expected)
            if release_device:
                await self._release_returned_device(assignment)
            message = "Return registered" if received else "Return status updated"
            return message, None

        transition = "return -> received" if received else "return -> pending"
        return await self._run("register_return", assignment_id, transition, apply)

    async def close(
        self,
        assignment_id: str,
        reason: str | None = None,
        resulting_device_status: DeviceStatus = DeviceStatus.USED,
    ) -> LifecycleResult:
        if resulting_device_status not in RELEASABLE_STATUSES:
            return LifecycleResult.failure(
                assignment_id,
                ValidationError(
                    f"Invalid resulting device status {resulting_device_status.value}"
                ),
            )

        async def apply(assignment: Assignment, expected: AssignmentState, now: datetime):
            record = lifecycle.close(assignment, reason, resulting_device_status, now)
            device = await self._devices.get_by_id(assignment.device_id)
            if device is None:
                raise NotFoundError(f"Device {assignment.device_id} not found")

            await self._write(assignment, expected)

            updated = await self._devices.update_status(
                device.id, resulting_device_status, assigned_to=None, clear_ticket=True
            )
            if not updated:
                raise NotFoundError(f"Device {device.id} not found")
            await self._sync_mirror(assignment, resulting_device_status.value, None)

            return "Assignment closed", {
                "assignment_id": assignment.id,
                "device_id": device.id,
                "imei": device.imei,
                "resulting_device_status": resulting_device_status.value,
                "closed_at": record.closed_at.isoformat(),
            }

        return await self._run(
            "close", assignment_id, f"active -> completed ({resulting_device_status.value})", apply
        )

    # ─── Internals ───────────────────────────────────────────────────

    async def _run(
        self,
        operation: str,
        assignment_id: str,
        transition: str,
        apply: _Transition,
    ) -> LifecycleResult:
        try:
            assignment = await self._assignments.get_by_id(assignment_id)
            if assignment is None:
                raise NotFoundError(f"Assignment {assignment_id} not found")

            message, data = await apply(assignment, assignment.state(), self._clock())
            await self._uow.commit()
        except DomainError as e:
            await self._rollback(operation, assignment_id)
            logger.info(
                "Assignment %s: %s rejected (%s): %s",
                assignment_id, operation, e.kind.value, e.message,
            )
            return LifecycleResult.failure(assignment_id, e)
        except Exception as e:
            await self._rollback(operation, assignment_id)
            logger.exception(
                "Error in %s for assignment %s (attempted %s)",
                operation, assignment_id, transition,
            )
            return LifecycleResult(
                assignment_id=assignment_id,
                success=False,
                error=str(e) or e.__class__.__name__,
                error_kind=ErrorKind.STORE,
            )

        logger.info("Assignment %s: %s", assignment_id, transition)
        return LifecycleResult(
            assignment_id=assignment_id, success=True, message=message, data=data
        )

    async def _write(self, assignment: Assignment, expected: AssignmentState) -> None:
        if not await self._assignments.update(assignment, expected):
            raise InvalidStateError(
                "Assignment was modified concurrently; reload it and retry"
            )

    async def _release_returned_device(self, assignment: Assignment) -> None:
        """The returned handset goes back to stock as USED.

        The registry is a best-effort mirror here: a missing device is only
        logged and the return registration still commits.
        """
        imei = assignment.return_device_imei
        returned = await self._devices.get_by_imei(imei)
        if returned is None:
            logger.warning(
                "Assignment %s: returned device with IMEI %s not found in inventory",
                assignment.id, imei,
            )
            return
        released = await self._devices.update_status(
            returned.id, DeviceStatus.USED, assigned_to=None
        )
        if not released:
            logger.warning(
                "Assignment %s: returned device %s (IMEI %s) vanished before release, skipping",
                assignment.id, returned.id, imei,
            )
            return
        logger.info("Device %s (IMEI %s) returned to stock as USED", returned.id, imei)

    async def _sync_mirror(
        self, assignment: Assignment, status: str, assigned_user: str | None
    ) -> None:
        if self._soti is None or not assignment.soti_device_id:
            return
        synced = await self._soti.update_mirror(assignment.soti_device_id, status, assigned_user)
        if not synced:
            logger.warning(
                "Assignment %s: SOTI mirror %s not found, skipping sync",
                assignment.id, assignment.soti_device_id,
            )

    async def _rollback(self, operation: str, assignment_id: str) -> None:
        try:
            await self._uow.rollback()
        except Exception:
            logger.exception("Rollback failed in %s for assignment %s", operation, assignment_id)
