"""Port interface for distributor persistence."""

from abc import ABC, abstractmethod

from phonedesk.domain.entities.distributor import Distributor


class DistributorRepository(ABC):
    @abstractmethod
    async def save(self, distributor: Distributor) -> Distributor:
        ...

    @abstractmethod
    async def get_by_id(self, distributor_id: str) -> Distributor | None:
        ...

    @abstractmethod
    async def get_all(self) -> list[Distributor]:
        ...
