"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.models import (
    AssignmentModel,
    DeviceModel,
    DistributorModel,
    SimModel,
    SotiDeviceModel,
)
from phonedesk.application.ports.assignment_repo import AssignmentRepository
from phonedesk.application.ports.device_repo import DeviceRepository
from phonedesk.application.ports.distributor_repo import DistributorRepository
from phonedesk.application.ports.sim_repo import SimFacets, SimPage, SimRepository
from phonedesk.application.ports.soti_device_repo import SotiDeviceRepository
from phonedesk.application.ports.unit_of_work import UnitOfWork
from phonedesk.domain.entities.assignment import Assignment, AssignmentState
from phonedesk.domain.entities.device import Device
from phonedesk.domain.entities.distributor import Distributor
from phonedesk.domain.entities.sim import Sim
from phonedesk.domain.entities.soti_device import SotiDevice
from phonedesk.domain.errors import InvalidStateError
from phonedesk.domain.value_objects.enums import (
    ACTIVE_SIM_STATUSES,
    AssignmentStatus,
    AssignmentType,
    DeviceStatus,
    ReturnStatus,
    ShippingStatus,
)
from phonedesk.domain.value_objects.sim_query import SimQuery, SimSortField

# ─── Mappers ─────────────────────────────────────────────────────────


def _device_to_domain(m: DeviceModel) -> Device:
    return Device(
        id=m.id,
        imei=m.imei,
        status=DeviceStatus(m.status),
        model_name=m.model_name,
        assigned_to=m.assigned_to,
        ticket_id=m.ticket_id,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _distributor_to_domain(m: DistributorModel) -> Distributor:
    return Distributor(id=m.id, name=m.name, is_active=m.is_active)


def _soti_to_domain(m: SotiDeviceModel) -> SotiDevice:
    return SotiDevice(
        id=m.id,
        imei=m.imei,
        device_name=m.device_name,
        status=m.status,
        assigned_user=m.assigned_user,
        is_active=m.is_active,
    )


def _sim_to_domain(m: SimModel) -> Sim:
    return Sim(
        id=m.id,
        icc=m.icc,
        status=m.status,
        provider=m.provider,
        ip=m.ip,
        distributor_id=m.distributor_id,
        distributor_name=m.distributor.name if m.distributor else None,
        is_active=m.is_active,
        last_sync=m.last_sync,
    )


def _assignment_to_domain(m: AssignmentModel) -> Assignment:
    return Assignment(
        id=m.id,
        device_id=m.device_id,
        assignee_name=m.assignee_name,
        assignee_phone=m.assignee_phone,
        assignee_email=m.assignee_email,
        delivery_location=m.delivery_location,
        contact_details=m.contact_details,
        distributor_id=m.distributor_id,
        soti_device_id=m.soti_device_id,
        type=AssignmentType(m.type),
        status=AssignmentStatus(m.status),
        created_at=m.created_at,
        shipping_voucher_id=m.shipping_voucher_id,
        shipping_status=ShippingStatus(m.shipping_status) if m.shipping_status else None,
        shipping_notes=m.shipping_notes,
        shipped_at=m.shipped_at,
        delivered_at=m.delivered_at,
        expects_return=m.expects_return,
        return_device_imei=m.return_device_imei,
        return_status=ReturnStatus(m.return_status) if m.return_status else None,
        return_received_at=m.return_received_at,
        return_notes=m.return_notes,
        closure_reason=m.closure_reason,
        closed_at=m.closed_at,
    )


def _assignment_mutable_values(a: Assignment) -> dict:
    """Columns a lifecycle transition may change."""
    return {
        "status": a.status.value,
        "shipping_status": a.shipping_status.value if a.shipping_status else None,
        "shipping_notes": a.shipping_notes,
        "shipped_at": a.shipped_at,
        "delivered_at": a.delivered_at,
        "return_status": a.return_status.value if a.return_status else None,
        "return_received_at": a.return_received_at,
        "return_notes": a.return_notes,
        "closure_reason": a.closure_reason,
        "closed_at": a.closed_at,
    }


def _matches(column, value):
    return column.is_(None) if value is None else column == value.value


# ─── Unit of work ────────────────────────────────────────────────────


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def commit(self) -> None:
        await self._s.commit()

    async def rollback(self) -> None:
        await self._s.rollback()


# ─── Repositories ────────────────────────────────────────────────────


class SqlDeviceRepository(DeviceRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, device: Device) -> Device:
        m = DeviceModel(
            imei=device.imei,
            model_name=device.model_name,
            status=device.status.value,
            assigned_to=device.assigned_to,
            ticket_id=device.ticket_id,
        )
        self._s.add(m)
        try:
            await self._s.flush()
        except IntegrityError as e:
            raise InvalidStateError(f"A device with IMEI {device.imei} already exists") from e
        device.id = m.id
        return device

    async def get_by_id(self, device_id: str) -> Device | None:
        m = await self._s.get(DeviceModel, device_id)
        return _device_to_domain(m) if m else None

    async def get_by_imei(self, imei: str) -> Device | None:
        result = await self._s.execute(select(DeviceModel).where(DeviceModel.imei == imei))
        m = result.scalar_one_or_none()
        return _device_to_domain(m) if m else None

    async def get_all(self, status: DeviceStatus | None = None) -> list[Device]:
        query = select(DeviceModel).order_by(DeviceModel.imei)
        if status is not None:
            query = query.where(DeviceModel.status == status.value)
        result = await self._s.execute(query)
        return [_device_to_domain(m) for m in result.scalars()]

    async def update_status(
        self,
        device_id: str,
        status: DeviceStatus,
        assigned_to: str | None,
        clear_ticket: bool = False,
    ) -> bool:
        values = {
            "status": status.value,
            "assigned_to": assigned_to,
            "updated_at": datetime.now(timezone.utc),
        }
        if clear_ticket:
            values["ticket_id"] = None
        result = await self._s.execute(
            update(DeviceModel).where(DeviceModel.id == device_id).values(**values)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, assignment: Assignment) -> Assignment:
        m = AssignmentModel(
            device_id=assignment.device_id,
            soti_device_id=assignment.soti_device_id,
            distributor_id=assignment.distributor_id,
            type=assignment.type.value,
            assignee_name=assignment.assignee_name,
            assignee_phone=assignment.assignee_phone,
            assignee_email=assignment.assignee_email,
            delivery_location=assignment.delivery_location,
            contact_details=assignment.contact_details,
            shipping_voucher_id=assignment.shipping_voucher_id,
            expects_return=assignment.expects_return,
            return_device_imei=assignment.return_device_imei,
            **_assignment_mutable_values(assignment),
        )
        if assignment.created_at is not None:
            m.created_at = assignment.created_at
        self._s.add(m)
        try:
            await self._s.flush()
        except IntegrityError as e:
            raise InvalidStateError("Device already has an active assignment") from e
        assignment.id = m.id
        return assignment

    async def get_by_id(self, assignment_id: str) -> Assignment | None:
        m = await self._s.get(AssignmentModel, assignment_id)
        return _assignment_to_domain(m) if m else None

    async def get_active_for_device(self, device_id: str) -> Assignment | None:
        result = await self._s.execute(
            select(AssignmentModel).where(
                AssignmentModel.device_id == device_id,
                AssignmentModel.status == AssignmentStatus.ACTIVE.value,
            )
        )
        m = result.scalars().first()
        return _assignment_to_domain(m) if m else None

    async def get_all(
        self,
        device_id: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[Assignment]:
        query = select(AssignmentModel).order_by(AssignmentModel.created_at.desc())
        if device_id is not None:
            query = query.where(AssignmentModel.device_id == device_id)
        if status is not None:
            query = query.where(AssignmentModel.status == status.value)
        result = await self._s.execute(query)
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def update(self, assignment: Assignment, expected: AssignmentState) -> bool:
        # Compare-and-swap on status and sub-states: a concurrent transition makes this match zero rows
        result = await self._s.execute(
            update(AssignmentModel)
            .where(
                AssignmentModel.id == assignment.id,
                AssignmentModel.status == expected.status.value,
                _matches(AssignmentModel.shipping_status, expected.shipping_status),
                _matches(AssignmentModel.return_status, expected.return_status),
            )
            .values(**_assignment_mutable_values(assignment))
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlDistributorRepository(DistributorRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, distributor: Distributor) -> Distributor:
        m = DistributorModel(name=distributor.name, is_active=distributor.is_active)
        self._s.add(m)
        try:
            await self._s.flush()
        except IntegrityError as e:
            raise InvalidStateError(f"Distributor {distributor.name} already exists") from e
        distributor.id = m.id
        return distributor

    async def get_by_id(self, distributor_id: str) -> Distributor | None:
        m = await self._s.get(DistributorModel, distributor_id)
        return _distributor_to_domain(m) if m else None

    async def get_all(self) -> list[Distributor]:
        result = await self._s.execute(select(DistributorModel).order_by(DistributorModel.name))
        return [_distributor_to_domain(m) for m in result.scalars()]


class SqlSotiDeviceRepository(SotiDeviceRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, soti_device_id: str) -> SotiDevice | None:
        m = await self._s.get(SotiDeviceModel, soti_device_id)
        return _soti_to_domain(m) if m else None

    async def update_mirror(
        self, soti_device_id: str, status: str, assigned_user: str | None
    ) -> bool:
        result = await self._s.execute(
            update(SotiDeviceModel)
            .where(SotiDeviceModel.id == soti_device_id)
            .values(status=status, assigned_user=assigned_user)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlSimRepository(SimRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def search(self, query: SimQuery) -> SimPage:
        conditions = _sim_conditions(query)

        stmt = (
            select(SimModel)
            .outerjoin(SimModel.distributor)
            .where(*conditions)
            .order_by(*_sim_order(query))
            .limit(query.limit)
            .offset(query.offset)
        )
        result = await self._s.execute(stmt)
        items = [_sim_to_domain(m) for m in result.scalars().unique()]

        summary = await self._s.execute(
            select(func.count(SimModel.id), func.max(SimModel.last_sync)).where(*conditions)
        )
        total, last_sync = summary.one()
        return SimPage(items=items, total=total, last_sync=last_sync)

    async def facets(self) -> SimFacets:
        statuses = await self._s.execute(
            select(SimModel.status).distinct().order_by(SimModel.status)
        )
        providers = await self._s.execute(
            select(SimModel.provider).distinct().order_by(SimModel.provider)
        )
        active = await self._s.execute(
            select(func.count(SimModel.id)).where(SimModel.status.in_(ACTIVE_SIM_STATUSES))
        )
        inactive = await self._s.execute(
            select(func.count(SimModel.id)).where(SimModel.status.not_in(ACTIVE_SIM_STATUSES))
        )
        return SimFacets(
            statuses=list(statuses.scalars()),
            providers=list(providers.scalars()),
            total_active=active.scalar_one(),
            total_inactive=inactive.scalar_one(),
        )


def _sim_conditions(query: SimQuery) -> list:
    conditions = []
    if query.status:
        conditions.append(SimModel.status == query.status)
    elif query.active is True:
        conditions.append(SimModel.status.in_(ACTIVE_SIM_STATUSES))
    elif query.active is False:
        conditions.append(SimModel.status.not_in(ACTIVE_SIM_STATUSES))
    if query.provider:
        conditions.append(SimModel.provider == query.provider.value)
    if query.distributor_id:
        conditions.append(SimModel.distributor_id == query.distributor_id)
    if query.search:
        conditions.append(or_(
            SimModel.icc.icontains(query.search, autoescape=True),
            SimModel.ip.icontains(query.search, autoescape=True),
        ))
    return conditions


def _sim_order(query: SimQuery) -> list:
    """Requested column first, then stable tie-breakers."""
    def direction(column):
        return column.desc() if query.descending else column.asc()

    if query.sort_by == SimSortField.ICC:
        return [direction(SimModel.icc), SimModel.provider, SimModel.status]
    if query.sort_by == SimSortField.IP:
        return [direction(SimModel.ip), SimModel.icc]
    if query.sort_by == SimSortField.PROVIDER:
        return [direction(SimModel.provider), SimModel.status, SimModel.icc]
    if query.sort_by == SimSortField.STATUS:
        return [direction(SimModel.status), SimModel.provider, SimModel.icc]
    if query.sort_by == SimSortField.DISTRIBUTOR:
        return [direction(DistributorModel.name), SimModel.icc]
    return [SimModel.provider, SimModel.status, SimModel.icc]
