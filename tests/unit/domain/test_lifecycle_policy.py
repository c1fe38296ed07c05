"""Tests for the assignment lifecycle transitions."""

import json
from datetime import timedelta

import pytest

from phonedesk.domain.errors import InvalidStateError, ValidationError
from phonedesk.domain.policies import lifecycle
from phonedesk.domain.value_objects.enums import (
    AssignmentStatus,
    DeviceStatus,
    ReturnStatus,
    ShippingStatus,
)

# ─── start_shipping / mark_delivered ────────────────────────────────


def test_start_shipping_sets_shipped(active_assignment, now):
    lifecycle.start_shipping(active_assignment, now)
    assert active_assignment.shipping_status == ShippingStatus.SHIPPED
    assert active_assignment.shipped_at == now


def test_start_shipping_from_pending(active_assignment, now):
    active_assignment.shipping_status = ShippingStatus.PENDING
    lifecycle.start_shipping(active_assignment, now)
    assert active_assignment.shipping_status == ShippingStatus.SHIPPED


def test_start_shipping_twice_fails(active_assignment, now):
    lifecycle.start_shipping(active_assignment, now)
    with pytest.raises(InvalidStateError):
        lifecycle.start_shipping(active_assignment, now + timedelta(hours=1))
    assert active_assignment.shipped_at == now


def test_start_shipping_requires_voucher(active_assignment, now):
    active_assignment.shipping_voucher_id = None
    with pytest.raises(InvalidStateError, match="voucher"):
        lifecycle.start_shipping(active_assignment, now)


def test_start_shipping_requires_active(active_assignment, now):
    active_assignment.status = AssignmentStatus.COMPLETED
    with pytest.raises(InvalidStateError, match="active"):
        lifecycle.start_shipping(active_assignment, now)


def test_mark_delivered_requires_shipped(active_assignment, now):
    with pytest.raises(InvalidStateError, match="shipped"):
        lifecycle.mark_delivered(active_assignment, now)


def test_mark_delivered_opens_return(active_assignment, now):
    active_assignment.expects_return = True
    lifecycle.start_shipping(active_assignment, now)
    lifecycle.mark_delivered(active_assignment, now + timedelta(days=1))

    assert active_assignment.shipping_status == ShippingStatus.DELIVERED
    assert active_assignment.delivered_at == now + timedelta(days=1)
    assert active_assignment.return_status == ReturnStatus.PENDING
    assert active_assignment.invariant_violations() == []


def test_mark_delivered_without_return_leaves_return_unset(active_assignment, now):
    lifecycle.start_shipping(active_assignment, now)
    lifecycle.mark_delivered(active_assignment, now)
    assert active_assignment.return_status is None


# ─── update_shipping ────────────────────────────────────────────────


def test_update_shipping_to_delivered_backfills_shipped_at(active_assignment, now):
    lifecycle.update_shipping(active_assignment, ShippingStatus.DELIVERED, "left at desk", now)
    assert active_assignment.shipped_at == now
    assert active_assignment.delivered_at == now
    assert active_assignment.shipping_notes == "left at desk"


def test_update_shipping_never_overwrites_timestamps(active_assignment, now):
    lifecycle.start_shipping(active_assignment, now)
    later = now + timedelta(days=2)
    lifecycle.update_shipping(active_assignment, ShippingStatus.PENDING, None, later)
    lifecycle.update_shipping(active_assignment, ShippingStatus.SHIPPED, None, later)
    assert active_assignment.shipping_status == ShippingStatus.SHIPPED
    assert active_assignment.shipped_at == now


def test_update_shipping_requires_voucher(active_assignment, now):
    active_assignment.shipping_voucher_id = None
    with pytest.raises(InvalidStateError):
        lifecycle.update_shipping(active_assignment, ShippingStatus.SHIPPED, None, now)


# ─── register_return ────────────────────────────────────────────────


def test_register_return_received(active_assignment, now):
    active_assignment.expects_return = True
    active_assignment.return_device_imei = "490154203237518"

    release = lifecycle.register_return(active_assignment, True, "box intact", now)

    assert release is True
    assert active_assignment.return_status == ReturnStatus.RECEIVED
    assert active_assignment.return_received_at == now
    assert active_assignment.return_notes == "box intact"


def test_register_return_without_imei_releases_nothing(active_assignment, now):
    active_assignment.expects_return = True
    assert lifecycle.register_return(active_assignment, True, None, now) is False


def test_register_return_not_received_keeps_pending(active_assignment, now):
    active_assignment.expects_return = True
    active_assignment.return_device_imei = "490154203237518"
    assert lifecycle.register_return(active_assignment, False, "", now) is False
    assert active_assignment.return_status == ReturnStatus.PENDING
    assert active_assignment.return_received_at is None
    assert active_assignment.return_notes is None


def test_register_return_twice_fails(active_assignment, now):
    active_assignment.expects_return = True
    lifecycle.register_return(active_assignment, True, None, now)
    with pytest.raises(InvalidStateError, match="already"):
        lifecycle.register_return(active_assignment, True, None, now)


def test_register_return_when_not_expected(active_assignment, now):
    with pytest.raises(InvalidStateError, match="does not expect"):
        lifecycle.register_return(active_assignment, True, None, now)


# ─── close ──────────────────────────────────────────────────────────


def test_close_completes_assignment(active_assignment, now):
    record = lifecycle.close(active_assignment, "  employee left  ", DeviceStatus.USED, now)

    assert active_assignment.status == AssignmentStatus.COMPLETED
    assert active_assignment.closed_at == now
    assert record.reason == "employee left"
    assert active_assignment.closure == record
    assert active_assignment.invariant_violations() == []


def test_close_blank_reason_is_none(active_assignment, now):
    record = lifecycle.close(active_assignment, "   ", DeviceStatus.LOST, now)
    assert record.reason is None
    assert record.resulting_device_status == DeviceStatus.LOST


def test_close_twice_fails(active_assignment, now):
    lifecycle.close(active_assignment, None, DeviceStatus.USED, now)
    with pytest.raises(InvalidStateError):
        lifecycle.close(active_assignment, None, DeviceStatus.USED, now)


@pytest.mark.parametrize("status", [DeviceStatus.NEW, DeviceStatus.ASSIGNED])
def test_close_rejects_non_releasable_status(active_assignment, now, status):
    with pytest.raises(ValidationError):
        lifecycle.close(active_assignment, None, status, now)
    assert active_assignment.is_active()


def test_close_validates_status_before_state(active_assignment, now):
    active_assignment.status = AssignmentStatus.COMPLETED
    with pytest.raises(ValidationError):
        lifecycle.close(active_assignment, None, DeviceStatus.NEW, now)


def test_close_carries_previous_metadata(active_assignment, now):
    active_assignment.closure_reason = json.dumps(
        {"reason": "old", "approved_by": "ops", "extensions": {"ticket": "INC-9"}}
    )
    record = lifecycle.close(active_assignment, "new reason", DeviceStatus.REPAIRED, now)
    assert record.reason == "new reason"
    assert record.extensions == {"ticket": "INC-9", "approved_by": "ops"}


def test_close_over_legacy_text_reason(active_assignment, now):
    active_assignment.closure_reason = "Baja"
    record = lifecycle.close(active_assignment, None, DeviceStatus.USED, now)
    assert record.reason is None
    assert record.extensions == {}


def test_close_over_non_map_extensions(active_assignment, now):
    active_assignment.closure_reason = '{"note": "kept", "extensions": ["legacy"]}'
    record = lifecycle.close(active_assignment, "done", DeviceStatus.USED, now)
    assert record.extensions == {"extensions_legacy": ["legacy"], "note": "kept"}
    assert active_assignment.closure == record
