"""Liveness endpoint with a store round-trip."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.adapters.persistence.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    dialect = session.bind.dialect.name if session.bind is not None else None
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: store unreachable (%s)", e)
        return {"status": "degraded", "store": {"dialect": dialect, "reachable": False, "error": str(e)}}

    return {"status": "ok", "store": {"dialect": dialect, "reachable": True}}
