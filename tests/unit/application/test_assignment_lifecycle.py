"""Tests for AssignmentLifecycleUseCase with in-memory fakes."""

from __future__ import annotations

import json

import pytest

from phonedesk.application.use_cases.assignment_lifecycle import AssignmentLifecycleUseCase
from phonedesk.domain.entities.device import Device
from phonedesk.domain.entities.soti_device import SotiDevice
from phonedesk.domain.errors import ErrorKind
from phonedesk.domain.value_objects.enums import (
    AssignmentStatus,
    DeviceStatus,
    ReturnStatus,
    ShippingStatus,
)

RETURNED_IMEI = "490154203237518"


@pytest.fixture
def wiring(fake_classes, assigned_device, active_assignment, now):
    returned = Device(
        id="dev-2", imei=RETURNED_IMEI, status=DeviceStatus.ASSIGNED, assigned_to="Lucía Pérez",
    )
    devices = fake_classes["devices"]([assigned_device, returned])
    assignments = fake_classes["assignments"]([active_assignment])
    soti = fake_classes["soti"]([SotiDevice(id="soti-1", imei=assigned_device.imei)])
    uow = fake_classes["uow"]()
    uc = AssignmentLifecycleUseCase(
        assignment_repo=assignments,
        device_repo=devices,
        uow=uow,
        soti_repo=soti,
        clock=lambda: now,
    )
    return uc, assignments, devices, soti, uow


# ─── Shipping ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_then_deliver(wiring, now):
    uc, assignments, _, _, uow = wiring

    started = await uc.start_shipping("asg-1")
    delivered = await uc.mark_delivered("asg-1")

    assert started.success and delivered.success
    stored = assignments.assignments["asg-1"]
    assert stored.shipping_status == ShippingStatus.DELIVERED
    assert stored.shipped_at == now
    assert stored.delivered_at == now
    assert uow.commits == 2


@pytest.mark.asyncio
async def test_deliver_twice_fails_second_time(wiring):
    uc, assignments, _, _, uow = wiring
    await uc.start_shipping("asg-1")
    await uc.mark_delivered("asg-1")

    result = await uc.mark_delivered("asg-1")

    assert not result.success
    assert result.error_kind == ErrorKind.INVALID_STATE
    assert uow.rollbacks == 1
    assert assignments.updates == 2


@pytest.mark.asyncio
async def test_start_shipping_unknown_assignment(wiring):
    uc, _, _, _, uow = wiring
    result = await uc.start_shipping("missing")
    assert not result.success
    assert result.error_kind == ErrorKind.NOT_FOUND
    assert "missing" in result.error
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_update_shipping_with_notes(wiring):
    uc, assignments, _, _, _ = wiring
    result = await uc.update_shipping("asg-1", ShippingStatus.SHIPPED, "courier picked up")
    assert result.success
    assert "shipped" in result.message
    assert assignments.assignments["asg-1"].shipping_notes == "courier picked up"


@pytest.mark.asyncio
async def test_update_shipping_without_voucher(wiring):
    uc, assignments, _, _, _ = wiring
    assignments.assignments["asg-1"].shipping_voucher_id = None
    result = await uc.update_shipping("asg-1", ShippingStatus.SHIPPED)
    assert result.error_kind == ErrorKind.INVALID_STATE
    assert assignments.assignments["asg-1"].shipping_status is None


# ─── Return ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_return_releases_returned_device(wiring, now):
    uc, assignments, devices, _, _ = wiring
    stored = assignments.assignments["asg-1"]
    stored.expects_return = True
    stored.return_device_imei = RETURNED_IMEI

    result = await uc.register_return("asg-1", True, "received at HQ")

    assert result.success
    assert assignments.assignments["asg-1"].return_status == ReturnStatus.RECEIVED
    assert assignments.assignments["asg-1"].return_received_at == now
    returned = devices.devices["dev-2"]
    assert returned.status == DeviceStatus.USED
    assert returned.assigned_to is None
    # The new device keeps its custody
    assert devices.devices["dev-1"].status == DeviceStatus.ASSIGNED


@pytest.mark.asyncio
async def test_register_return_unknown_imei_still_commits(wiring, caplog):
    uc, assignments, devices, _, uow = wiring
    stored = assignments.assignments["asg-1"]
    stored.expects_return = True
    stored.return_device_imei = "000000000000000"

    result = await uc.register_return("asg-1", True)

    assert result.success
    assert assignments.assignments["asg-1"].return_status == ReturnStatus.RECEIVED
    assert devices.devices["dev-2"].status == DeviceStatus.ASSIGNED
    assert uow.commits == 1
    assert "not found in inventory" in caplog.text


@pytest.mark.asyncio
async def test_register_return_not_expected(wiring):
    uc, _, _, _, _ = wiring
    result = await uc.register_return("asg-1", True)
    assert result.error_kind == ErrorKind.INVALID_STATE


# ─── Close ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_close_releases_device(wiring, now):
    uc, assignments, devices, soti, _ = wiring
    assignments.assignments["asg-1"].soti_device_id = "soti-1"

    result = await uc.close("asg-1", "employee left", DeviceStatus.REPAIRED)

    assert result.success
    assert result.data == {
        "assignment_id": "asg-1",
        "device_id": "dev-1",
        "imei": "356938035643809",
        "resulting_device_status": "REPAIRED",
        "closed_at": now.isoformat(),
    }
    stored = assignments.assignments["asg-1"]
    assert stored.status == AssignmentStatus.COMPLETED
    assert stored.closed_at == now
    assert json.loads(stored.closure_reason)["reason"] == "employee left"
    device = devices.devices["dev-1"]
    assert device.status == DeviceStatus.REPAIRED
    assert device.assigned_to is None
    assert device.ticket_id is None
    assert soti.devices["soti-1"].status == "REPAIRED"
    assert soti.devices["soti-1"].assigned_user is None


@pytest.mark.asyncio
async def test_close_defaults_to_used(wiring):
    uc, _, devices, _, _ = wiring
    result = await uc.close("asg-1")
    assert result.success
    assert devices.devices["dev-1"].status == DeviceStatus.USED


@pytest.mark.asyncio
async def test_close_twice_is_invalid_state(wiring):
    uc, _, _, _, _ = wiring
    await uc.close("asg-1")
    result = await uc.close("asg-1")
    assert not result.success
    assert result.error_kind == ErrorKind.INVALID_STATE


@pytest.mark.asyncio
async def test_close_rejects_non_releasable_status_without_store(wiring):
    uc, assignments, _, _, uow = wiring
    result = await uc.close("asg-1", None, DeviceStatus.ASSIGNED)
    assert result.error_kind == ErrorKind.VALIDATION
    assert uow.commits == 0 and uow.rollbacks == 0
    assert assignments.assignments["asg-1"].is_active()


@pytest.mark.asyncio
async def test_close_with_missing_device_leaves_assignment_active(wiring):
    uc, assignments, devices, _, uow = wiring
    del devices.devices["dev-1"]

    result = await uc.close("asg-1")

    assert result.error_kind == ErrorKind.NOT_FOUND
    assert uow.rollbacks == 1
    assert assignments.assignments["asg-1"].is_active()


@pytest.mark.asyncio
async def test_close_after_shipping_and_return(wiring):
    uc, assignments, devices, _, _ = wiring
    stored = assignments.assignments["asg-1"]
    stored.expects_return = True
    stored.return_device_imei = RETURNED_IMEI

    assert (await uc.start_shipping("asg-1")).success
    assert (await uc.mark_delivered("asg-1")).success
    assert (await uc.register_return("asg-1", True)).success
    assert (await uc.close("asg-1")).success

    final = assignments.assignments["asg-1"]
    assert final.invariant_violations() == []
    assert devices.devices["dev-1"].custody_consistent()
    assert devices.devices["dev-2"].custody_consistent()


# ─── Concurrency and store failures ─────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_modification_rolls_back(wiring):
    uc, assignments, devices, _, uow = wiring
    real_get = assignments.get_by_id

    async def get_then_lose_race(assignment_id):
        loaded = await real_get(assignment_id)
        # Another writer closes it between our read and our write
        assignments.assignments[assignment_id].status = AssignmentStatus.COMPLETED
        return loaded

    assignments.get_by_id = get_then_lose_race

    result = await uc.close("asg-1")

    assert not result.success
    assert result.error_kind == ErrorKind.INVALID_STATE
    assert "concurrently" in result.error
    assert uow.rollbacks == 1
    assert devices.devices["dev-1"].status == DeviceStatus.ASSIGNED


@pytest.mark.asyncio
async def test_concurrent_delivery_on_still_active_assignment_rolls_back(wiring, now):
    uc, assignments, _, _, uow = wiring
    assert (await uc.start_shipping("asg-1")).success
    real_get = assignments.get_by_id

    async def get_then_lose_race(assignment_id):
        loaded = await real_get(assignment_id)
        # Another writer delivers it first; status stays active
        stored = assignments.assignments[assignment_id]
        stored.shipping_status = ShippingStatus.DELIVERED
        stored.delivered_at = now
        return loaded

    assignments.get_by_id = get_then_lose_race

    result = await uc.mark_delivered("asg-1")

    assert not result.success
    assert result.error_kind == ErrorKind.INVALID_STATE
    assert "concurrently" in result.error
    assert uow.rollbacks == 1
    assert assignments.updates == 1


@pytest.mark.asyncio
async def test_concurrent_return_registration_rolls_back(wiring):
    uc, assignments, devices, _, uow = wiring
    stored = assignments.assignments["asg-1"]
    stored.expects_return = True
    stored.return_device_imei = RETURNED_IMEI
    stored.return_status = ReturnStatus.PENDING
    real_get = assignments.get_by_id

    async def get_then_lose_race(assignment_id):
        loaded = await real_get(assignment_id)
        assignments.assignments[assignment_id].return_status = ReturnStatus.RECEIVED
        return loaded

    assignments.get_by_id = get_then_lose_race

    result = await uc.register_return("asg-1", True)

    assert result.error_kind == ErrorKind.INVALID_STATE
    assert uow.rollbacks == 1
    assert devices.devices["dev-2"].status == DeviceStatus.ASSIGNED


@pytest.mark.asyncio
async def test_returned_device_vanishing_before_release_is_logged(wiring, caplog, monkeypatch):
    uc, assignments, devices, _, uow = wiring
    stored = assignments.assignments["asg-1"]
    stored.expects_return = True
    stored.return_device_imei = RETURNED_IMEI
    real_update_status = devices.update_status

    async def update_status_after_delete(device_id, status, assigned_to, clear_ticket=False):
        if device_id == "dev-2":
            return False
        return await real_update_status(device_id, status, assigned_to, clear_ticket)

    monkeypatch.setattr(devices, "update_status", update_status_after_delete)

    result = await uc.register_return("asg-1", True)

    assert result.success
    assert uow.commits == 1
    assert assignments.assignments["asg-1"].return_status == ReturnStatus.RECEIVED
    assert "vanished before release" in caplog.text
    assert "returned to stock" not in caplog.text


@pytest.mark.asyncio
async def test_commit_failure_is_store_error(fake_classes, assigned_device, active_assignment, now):
    uow = fake_classes["uow"](fail_commit=True)
    uc = AssignmentLifecycleUseCase(
        assignment_repo=fake_classes["assignments"]([active_assignment]),
        device_repo=fake_classes["devices"]([assigned_device]),
        uow=uow,
        clock=lambda: now,
    )

    result = await uc.start_shipping("asg-1")

    assert not result.success
    assert result.error_kind == ErrorKind.STORE
    assert "connection reset" in result.error
    assert uow.rollbacks == 1


# ─── End-to-end scenarios ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_voucher_without_return_scenario(wiring):
    uc, assignments, devices, _, _ = wiring

    assert (await uc.start_shipping("asg-1")).success
    assert (await uc.update_shipping("asg-1", ShippingStatus.DELIVERED)).success
    assert (await uc.close("asg-1", resulting_device_status=DeviceStatus.USED)).success

    device = devices.devices["dev-1"]
    assert device.status == DeviceStatus.USED
    assert device.assigned_to is None
    assert assignments.assignments["asg-1"].status == AssignmentStatus.COMPLETED
    assert assignments.assignments["asg-1"].return_status is None


@pytest.mark.asyncio
async def test_delivery_opens_pending_return(wiring):
    uc, assignments, _, _, _ = wiring
    assignments.assignments["asg-1"].expects_return = True

    await uc.start_shipping("asg-1")
    await uc.mark_delivered("asg-1")

    assert assignments.assignments["asg-1"].return_status == ReturnStatus.PENDING
