"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from phonedesk.application.ports.assignment_repo import AssignmentRepository
from phonedesk.application.ports.device_repo import DeviceRepository
from phonedesk.application.ports.distributor_repo import DistributorRepository
from phonedesk.application.ports.soti_device_repo import SotiDeviceRepository
from phonedesk.application.ports.unit_of_work import UnitOfWork
from phonedesk.domain.entities.assignment import Assignment
from phonedesk.domain.entities.device import Device
from phonedesk.domain.entities.distributor import Distributor
from phonedesk.domain.entities.soti_device import SotiDevice
from phonedesk.domain.errors import InvalidStateError
from phonedesk.domain.value_objects.enums import AssignmentStatus, DeviceStatus

FIXED_NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeDeviceRepo(DeviceRepository):
    def __init__(self, devices: list[Device] | None = None):
        self.devices: dict[str, Device] = {d.id: d for d in devices or []}

    async def save(self, device):
        if device.id is None:
            device.id = f"dev-{len(self.devices) + 1}"
        self.devices[device.id] = device
        return device

    async def get_by_id(self, device_id):
        device = self.devices.get(device_id)
        return replace(device) if device else None

    async def get_by_imei(self, imei):
        device = next((d for d in self.devices.values() if d.imei == imei), None)
        return replace(device) if device else None

    async def get_all(self, status=None):
        return [d for d in self.devices.values() if status is None or d.status == status]

    async def update_status(self, device_id, status, assigned_to, clear_ticket=False):
        device = self.devices.get(device_id)
        if device is None:
            return False
        device.status = status
        device.assigned_to = assigned_to
        if clear_ticket:
            device.ticket_id = None
        return True


class FakeAssignmentRepo(AssignmentRepository):
    """Stores copies so callers only see what they explicitly wrote."""

    def __init__(self, assignments: list[Assignment] | None = None):
        self.assignments: dict[str, Assignment] = {
            a.id: replace(a) for a in assignments or []
        }
        self.updates = 0

    async def save(self, assignment):
        if await self.get_active_for_device(assignment.device_id):
            raise InvalidStateError("Device already has an active assignment")
        assignment.id = f"asg-{len(self.assignments) + 1}"
        self.assignments[assignment.id] = replace(assignment)
        return assignment

    async def get_by_id(self, assignment_id):
        stored = self.assignments.get(assignment_id)
        return replace(stored) if stored else None

    async def get_active_for_device(self, device_id):
        return next(
            (
                replace(a) for a in self.assignments.values()
                if a.device_id == device_id and a.status == AssignmentStatus.ACTIVE
            ),
            None,
        )

    async def get_all(self, device_id=None, status=None):
        return [
            replace(a) for a in self.assignments.values()
            if (device_id is None or a.device_id == device_id)
            and (status is None or a.status == status)
        ]

    async def update(self, assignment, expected):
        stored = self.assignments.get(assignment.id)
        if stored is None or stored.state() != expected:
            return False
        self.assignments[assignment.id] = replace(assignment)
        self.updates += 1
        return True


class FakeDistributorRepo(DistributorRepository):
    def __init__(self, distributors: list[Distributor] | None = None):
        self.distributors = {d.id: d for d in distributors or []}

    async def save(self, distributor):
        distributor.id = distributor.id or f"dist-{len(self.distributors) + 1}"
        self.distributors[distributor.id] = distributor
        return distributor

    async def get_by_id(self, distributor_id):
        return self.distributors.get(distributor_id)

    async def get_all(self):
        return list(self.distributors.values())


class FakeSotiRepo(SotiDeviceRepository):
    def __init__(self, devices: list[SotiDevice] | None = None):
        self.devices = {d.id: d for d in devices or []}

    async def get_by_id(self, soti_device_id):
        return self.devices.get(soti_device_id)

    async def update_mirror(self, soti_device_id, status, assigned_user):
        device = self.devices.get(soti_device_id)
        if device is None:
            return False
        device.status = status
        device.assigned_user = assigned_user
        return True


class FakeUnitOfWork(UnitOfWork):
    def __init__(self, fail_commit: bool = False):
        self.commits = 0
        self.rollbacks = 0
        self._fail_commit = fail_commit

    async def commit(self):
        if self._fail_commit:
            raise ConnectionError("connection reset by peer")
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


# ─── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def stock_device():
    return Device(id="dev-1", imei="356938035643809", model_name="Galaxy A54")


@pytest.fixture
def assigned_device():
    return Device(
        id="dev-1",
        imei="356938035643809",
        status=DeviceStatus.ASSIGNED,
        model_name="Galaxy A54",
        assigned_to="Lucía Pérez",
        ticket_id="INC-4411",
    )


@pytest.fixture
def active_assignment():
    return Assignment(
        id="asg-1",
        device_id="dev-1",
        assignee_name="Lucía Pérez",
        assignee_phone="+54 11 5555 0101",
        delivery_location="Sucursal Rosario",
        shipping_voucher_id="ENV-20261017-AB12C",
        shipping_status=None,
    )


@pytest.fixture
def fake_classes():
    """The fake adapters, for tests that build their own wiring."""
    return {
        "devices": FakeDeviceRepo,
        "assignments": FakeAssignmentRepo,
        "distributors": FakeDistributorRepo,
        "soti": FakeSotiRepo,
        "uow": FakeUnitOfWork,
    }
