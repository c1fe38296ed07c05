"""Stock endpoints — device intake, listing and detail by IMEI."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.database import get_session
from phonedesk.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlDeviceRepository,
)
from phonedesk.domain.entities.device import Device
from phonedesk.domain.value_objects.enums import DeviceStatus
from phonedesk.infrastructure.api.auth import require_admin, require_module
from phonedesk.infrastructure.api.dependencies import get_assignment_repo, get_device_repo
from phonedesk.infrastructure.api.schemas import DeviceCreate
from phonedesk.infrastructure.api.serializers import serialize_assignment, serialize_device

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stock", tags=["stock"])

_can_view = require_module("/stock")


@router.get("", dependencies=[Depends(_can_view)])
async def list_devices(
    status: DeviceStatus | None = None,
    repo: SqlDeviceRepository = Depends(get_device_repo),
):
    """List stock devices, optionally filtered by custody status."""
    devices = await repo.get_all(status=status)
    return {
        "success": True,
        "total": len(devices),
        "devices": [serialize_device(d) for d in devices],
    }


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_device(
    body: DeviceCreate,
    repo: SqlDeviceRepository = Depends(get_device_repo),
    session: AsyncSession = Depends(get_session),
):
    """Register a new handset in stock."""
    if await repo.get_by_imei(body.imei):
        raise HTTPException(status_code=409, detail=f"A device with IMEI {body.imei} already exists")

    device = await repo.save(Device(
        id=None,
        imei=body.imei,
        model_name=body.model_name,
        status=body.status,
        ticket_id=body.ticket_id,
    ))
    await session.commit()
    logger.info("Device %s registered (IMEI %s, %s)", device.id, device.imei, device.status.value)
    return {"success": True, "data": serialize_device(device)}


@router.get("/{imei}", dependencies=[Depends(_can_view)])
async def get_device(
    imei: str,
    repo: SqlDeviceRepository = Depends(get_device_repo),
    assignments: SqlAssignmentRepository = Depends(get_assignment_repo),
):
    """Device detail with its full assignment history."""
    device = await repo.get_by_imei(imei.strip())
    if device is None:
        raise HTTPException(status_code=404, detail=f"No device found with IMEI {imei}")

    history = await assignments.get_all(device_id=device.id)
    active = next((a for a in history if a.is_active()), None)
    return {
        "success": True,
        "data": {
            **serialize_device(device),
            "active_assignment": serialize_assignment(active) if active else None,
            "assignments": [serialize_assignment(a) for a in history],
        },
    }
