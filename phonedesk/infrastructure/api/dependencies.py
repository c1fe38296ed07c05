"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.database import get_session
from phonedesk.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlDeviceRepository,
    SqlDistributorRepository,
    SqlSimRepository,
    SqlSotiDeviceRepository,
    SqlUnitOfWork,
)
from phonedesk.application.use_cases.assignment_lifecycle import AssignmentLifecycleUseCase
from phonedesk.application.use_cases.create_assignment import CreateAssignmentUseCase
from phonedesk.config import settings


def get_device_repo(session: AsyncSession = Depends(get_session)) -> SqlDeviceRepository:
    return SqlDeviceRepository(session)


def get_assignment_repo(session: AsyncSession = Depends(get_session)) -> SqlAssignmentRepository:
    return SqlAssignmentRepository(session)


def get_distributor_repo(session: AsyncSession = Depends(get_session)) -> SqlDistributorRepository:
    return SqlDistributorRepository(session)


def get_sim_repo(session: AsyncSession = Depends(get_session)) -> SqlSimRepository:
    return SqlSimRepository(session)


def get_lifecycle_uc(
    session: AsyncSession = Depends(get_session),
) -> AssignmentLifecycleUseCase:
    return AssignmentLifecycleUseCase(
        assignment_repo=SqlAssignmentRepository(session),
        device_repo=SqlDeviceRepository(session),
        uow=SqlUnitOfWork(session),
        soti_repo=SqlSotiDeviceRepository(session),
    )


def get_create_assignment_uc(
    session: AsyncSession = Depends(get_session),
) -> CreateAssignmentUseCase:
    return CreateAssignmentUseCase(
        assignment_repo=SqlAssignmentRepository(session),
        device_repo=SqlDeviceRepository(session),
        distributor_repo=SqlDistributorRepository(session),
        uow=SqlUnitOfWork(session),
        soti_repo=SqlSotiDeviceRepository(session),
        voucher_prefix=settings.voucher_prefix,
    )
