"""Domain entity → API response dict conversion."""

from __future__ import annotations

from datetime import datetime

from phonedesk.domain.entities.assignment import Assignment
from phonedesk.domain.entities.device import Device
from phonedesk.domain.entities.distributor import Distributor
from phonedesk.domain.entities.sim import Sim


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_device(d: Device) -> dict:
    return {
        "id": d.id,
        "imei": d.imei,
        "model_name": d.model_name,
        "status": d.status.value,
        "assigned_to": d.assigned_to,
        "ticket_id": d.ticket_id,
        "created_at": _iso(d.created_at),
        "updated_at": _iso(d.updated_at),
    }


def serialize_distributor(d: Distributor) -> dict:
    return {"id": d.id, "name": d.name, "is_active": d.is_active}


def serialize_sim(s: Sim) -> dict:
    return {
        "icc": s.icc,
        "ip": s.ip,
        "status": s.status,
        "provider": s.provider,
        "distributor_id": s.distributor_id,
        "distributor": (
            {"id": s.distributor_id, "name": s.distributor_name} if s.distributor_id else None
        ),
    }


def serialize_assignment(a: Assignment) -> dict:
    closure = a.closure
    return {
        "id": a.id,
        "device_id": a.device_id,
        "soti_device_id": a.soti_device_id,
        "distributor_id": a.distributor_id,
        "type": a.type.value,
        "status": a.status.value,
        "created_at": _iso(a.created_at),
        "assignee": {
            "name": a.assignee_name,
            "phone": a.assignee_phone,
            "email": a.assignee_email,
            "delivery_location": a.delivery_location,
            "contact_details": a.contact_details,
        },
        "shipping": {
            "voucher_id": a.shipping_voucher_id,
            "status": a.shipping_status.value if a.shipping_status else None,
            "notes": a.shipping_notes,
            "shipped_at": _iso(a.shipped_at),
            "delivered_at": _iso(a.delivered_at),
        },
        "return": {
            "expects_return": a.expects_return,
            "device_imei": a.return_device_imei,
            "status": a.return_status.value if a.return_status else None,
            "received_at": _iso(a.return_received_at),
            "notes": a.return_notes,
        },
        "closure": closure.to_dict() if closure else None,
        "closed_at": _iso(a.closed_at),
    }
