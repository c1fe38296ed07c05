"""CreateAssignmentUseCase — hand a stock device to an assignee."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from phonedesk.application.ports.assignment_repo import AssignmentRepository
from phonedesk.application.ports.device_repo import DeviceRepository
from phonedesk.application.ports.distributor_repo import DistributorRepository
from phonedesk.application.ports.soti_device_repo import SotiDeviceRepository
from phonedesk.application.ports.unit_of_work import UnitOfWork
from phonedesk.application.use_cases.assignment_lifecycle import LifecycleResult, utcnow
from phonedesk.domain.entities.assignment import Assignment
from phonedesk.domain.errors import (
    DomainError,
    ErrorKind,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from phonedesk.domain.policies.voucher import generate_voucher_id
from phonedesk.domain.value_objects.enums import (
    AssignmentStatus,
    AssignmentType,
    DeviceStatus,
    ShippingStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class CreateAssignmentRequest:
    device_id: str
    assignee_name: str
    assignee_phone: str
    delivery_location: str
    assignee_email: str | None = None
    contact_details: str | None = None
    distributor_id: str | None = None
    soti_device_id: str | None = None
    type: AssignmentType = AssignmentType.ASSIGN
    generate_voucher: bool = False
    expects_return: bool = False
    return_device_imei: str | None = None


class CreateAssignmentUseCase:
    """Creates the assignment and marks the device ASSIGNED in one unit of work.

    The one-active-assignment-per-device rule is checked up front and
    enforced again by the store's unique index on insert.
    """

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        device_repo: DeviceRepository,
        distributor_repo: DistributorRepository,
        uow: UnitOfWork,
        soti_repo: SotiDeviceRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
        voucher_prefix: str = "ENV",
    ):
        self._assignments = assignment_repo
        self._devices = device_repo
        self._distributors = distributor_repo
        self._uow = uow
        self._soti = soti_repo
        self._clock = clock
        self._voucher_prefix = voucher_prefix

    async def execute(self, request: CreateAssignmentRequest) -> LifecycleResult:
        try:
            assignment = await self._create(request)
            await self._uow.commit()
        except DomainError as e:
            await self._rollback(request.device_id)
            logger.info("Device %s: assignment rejected (%s): %s", request.device_id, e.kind.value, e.message)
            return LifecycleResult.failure(None, e)
        except Exception as e:
            await self._rollback(request.device_id)
            logger.exception("Error creating assignment for device %s", request.device_id)
            return LifecycleResult(
                assignment_id=None,
                success=False,
                error=str(e) or e.__class__.__name__,
                error_kind=ErrorKind.STORE,
            )

        logger.info(
            "Device %s assigned to %s (assignment %s, voucher %s)",
            request.device_id, request.assignee_name,
            assignment.id, assignment.shipping_voucher_id,
        )
        message = "Assignment created"
        if assignment.shipping_voucher_id:
            message += f" with voucher {assignment.shipping_voucher_id}"
        return LifecycleResult(
            assignment_id=assignment.id,
            success=True,
            message=message,
            data={
                "assignment_id": assignment.id,
                "device_id": assignment.device_id,
                "shipping_voucher_id": assignment.shipping_voucher_id,
                "shipping_status": (
                    assignment.shipping_status.value if assignment.shipping_status else None
                ),
            },
        )

    async def _create(self, request: CreateAssignmentRequest) -> Assignment:
        if request.type == AssignmentType.REPLACE and not request.expects_return:
            raise ValidationError("A replacement assignment must expect a device return")

        device = await self._devices.get_by_id(request.device_id)
        if device is None:
            raise NotFoundError(f"Device {request.device_id} not found")
        if device.is_assigned():
            raise InvalidStateError("Device is already assigned")

        active = await self._assignments.get_active_for_device(device.id)
        if active is not None:
            raise InvalidStateError("Device already has an active assignment")

        if request.distributor_id:
            distributor = await self._distributors.get_by_id(request.distributor_id)
            if distributor is None:
                raise NotFoundError(f"Distributor {request.distributor_id} not found")

        if request.soti_device_id:
            if self._soti is None:
                raise ValidationError("SOTI mirror is not available")
            soti_device = await self._soti.get_by_id(request.soti_device_id)
            if soti_device is None:
                raise NotFoundError(f"SOTI device {request.soti_device_id} not found")
            if not soti_device.is_active:
                raise InvalidStateError("SOTI device is not active")

        now = self._clock()
        voucher_id = (
            generate_voucher_id(now, prefix=self._voucher_prefix)
            if request.generate_voucher
            else None
        )

        assignment = Assignment(
            id=None,
            device_id=device.id,
            assignee_name=request.assignee_name,
            assignee_phone=request.assignee_phone,
            assignee_email=request.assignee_email,
            delivery_location=request.delivery_location,
            contact_details=request.contact_details,
            distributor_id=request.distributor_id,
            soti_device_id=request.soti_device_id,
            type=request.type,
            status=AssignmentStatus.ACTIVE,
            created_at=now,
            shipping_voucher_id=voucher_id,
            shipping_status=ShippingStatus.PENDING if voucher_id else None,
            expects_return=request.expects_return,
            return_device_imei=request.return_device_imei if request.expects_return else None,
        )
        await self._assignments.save(assignment)

        updated = await self._devices.update_status(
            device.id, DeviceStatus.ASSIGNED, assigned_to=request.assignee_name
        )
        if not updated:
            raise NotFoundError(f"Device {device.id} not found")

        if self._soti is not None and request.soti_device_id:
            synced = await self._soti.update_mirror(
                request.soti_device_id, DeviceStatus.ASSIGNED.value, request.assignee_name
            )
            if not synced:
                logger.warning(
                    "Device %s: SOTI mirror %s not found, skipping sync",
                    device.id, request.soti_device_id,
                )
        return assignment

    async def _rollback(self, device_id: str) -> None:
        try:
            await self._uow.rollback()
        except Exception:
            logger.exception("Rollback failed while assigning device %s", device_id)
