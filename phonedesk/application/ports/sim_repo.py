"""Port interface for the SIM registry (read-only)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from phonedesk.domain.entities.sim import Sim
from phonedesk.domain.value_objects.sim_query import SimQuery


@dataclass
class SimPage:
    items: list[Sim]
    total: int
    last_sync: datetime | None = None


@dataclass
class SimFacets:
    """Filter options and active/inactive counts over the whole registry."""

    statuses: list[str] = field(default_factory=list)
    providers: list[str] = field(default_factory=list)
    total_active: int = 0
    total_inactive: int = 0


class SimRepository(ABC):
    @abstractmethod
    async def search(self, query: SimQuery) -> SimPage:
        """One page of matching SIMs, the match count and their latest sync time."""
        ...

    @abstractmethod
    async def facets(self) -> SimFacets:
        ...
