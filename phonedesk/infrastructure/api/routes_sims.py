"""SIM endpoints — read-only listing of carrier lines with filter options."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from phonedesk.adapters.persistence.repositories import SqlDistributorRepository, SqlSimRepository
from phonedesk.domain.value_objects.sim_query import SimQuery
from phonedesk.infrastructure.api.auth import require_module
from phonedesk.infrastructure.api.dependencies import get_distributor_repo, get_sim_repo
from phonedesk.infrastructure.api.serializers import serialize_sim

router = APIRouter(prefix="/sims", tags=["sims"])


@router.get("", dependencies=[Depends(require_module("/sims"))])
async def list_sims(
    search: str | None = None,
    status: str | None = None,
    provider: str | None = None,
    distributor_id: str | None = None,
    is_active: str | None = None,
    limit: str | None = None,
    offset: str | None = None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
    repo: SqlSimRepository = Depends(get_sim_repo),
    distributors: SqlDistributorRepository = Depends(get_distributor_repo),
):
    """Paginated SIM list plus the options the dashboard filters offer.

    ``is_active`` selects active or inactive carrier statuses and only
    applies when no explicit ``status`` is given.
    """
    query = SimQuery.from_params(
        search=search,
        status=status,
        provider=provider,
        distributor_id=distributor_id,
        is_active=is_active,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    page = await repo.search(query)
    facets = await repo.facets()
    all_distributors = sorted(await distributors.get_all(), key=lambda d: d.name)

    return {
        "success": True,
        "data": [serialize_sim(s) for s in page.items],
        "totalRecords": page.total,
        "lastUpdated": page.last_sync.isoformat() if page.last_sync else None,
        "metadata": {
            "statuses": facets.statuses,
            "providers": facets.providers,
            "distributors": [{"id": d.id, "name": d.name} for d in all_distributors],
            "totalActive": facets.total_active,
            "totalInactive": facets.total_inactive,
        },
    }
