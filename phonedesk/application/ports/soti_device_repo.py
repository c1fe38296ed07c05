"""Port interface for the MDM mirror records."""

from abc import ABC, abstractmethod

from phonedesk.domain.entities.soti_device import SotiDevice


class SotiDeviceRepository(ABC):
    @abstractmethod
    async def get_by_id(self, soti_device_id: str) -> SotiDevice | None:
        ...

    @abstractmethod
    async def update_mirror(
        self, soti_device_id: str, status: str, assigned_user: str | None
    ) -> bool:
        """Best-effort sync. Returns False if the mirror row is gone."""
        ...
