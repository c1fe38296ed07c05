"""Distributor endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.database import get_session
from phonedesk.adapters.persistence.repositories import SqlDistributorRepository
from phonedesk.domain.entities.distributor import Distributor
from phonedesk.infrastructure.api.auth import require_admin, require_module
from phonedesk.infrastructure.api.dependencies import get_distributor_repo
from phonedesk.infrastructure.api.schemas import DistributorCreate
from phonedesk.infrastructure.api.serializers import serialize_distributor

router = APIRouter(prefix="/distributors", tags=["distributors"])


@router.get("", dependencies=[Depends(require_module("/stock"))])
async def list_distributors(repo: SqlDistributorRepository = Depends(get_distributor_repo)):
    distributors = await repo.get_all()
    return {
        "success": True,
        "distributors": [serialize_distributor(d) for d in distributors],
    }


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_distributor(
    body: DistributorCreate,
    repo: SqlDistributorRepository = Depends(get_distributor_repo),
    session: AsyncSession = Depends(get_session),
):
    distributor = await repo.save(Distributor(id=None, name=body.name.strip()))
    await session.commit()
    return {"success": True, "data": serialize_distributor(distributor)}
