"""Analytics endpoints — stock and assignment KPIs for the reports dashboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.database import get_session
from phonedesk.adapters.persistence.models import AssignmentModel, DeviceModel
from phonedesk.domain.value_objects.enums import AssignmentStatus
from phonedesk.infrastructure.api.auth import require_module

router = APIRouter(prefix="/analytics", tags=["analytics"])


async def _count_by(session: AsyncSession, column, *where) -> dict[str, int]:
    query = select(column, func.count()).group_by(column)
    if where:
        query = query.where(*where)
    rows = (await session.execute(query)).all()
    return {row[0]: row[1] for row in rows if row[0] is not None}


@router.get("/summary", dependencies=[Depends(require_module("/reports"))])
async def analytics_summary(session: AsyncSession = Depends(get_session)):
    """Aggregate stats for the dashboard."""
    total_devices = (
        await session.execute(select(func.count(DeviceModel.id)))
    ).scalar() or 0
    total_assignments = (
        await session.execute(select(func.count(AssignmentModel.id)))
    ).scalar() or 0

    active_filter = AssignmentModel.status == AssignmentStatus.ACTIVE.value

    # Devices with an active assignment but a missing return, still in transit
    awaiting_return = (
        await session.execute(
            select(func.count(AssignmentModel.id)).where(
                active_filter,
                AssignmentModel.expects_return.is_(True),
                AssignmentModel.return_status.is_distinct_from("received"),
            )
        )
    ).scalar() or 0

    return {
        "total_devices": total_devices,
        "total_assignments": total_assignments,
        "devices_by_status": await _count_by(session, DeviceModel.status),
        "assignments_by_status": await _count_by(session, AssignmentModel.status),
        "assignments_by_type": await _count_by(session, AssignmentModel.type),
        "active_by_shipping_status": await _count_by(
            session, AssignmentModel.shipping_status, active_filter
        ),
        "active_by_return_status": await _count_by(
            session, AssignmentModel.return_status, active_filter
        ),
        "awaiting_return": awaiting_return,
    }
