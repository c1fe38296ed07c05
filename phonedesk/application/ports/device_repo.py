"""Port interface for the device registry."""

from abc import ABC, abstractmethod

from phonedesk.domain.entities.device import Device
from phonedesk.domain.value_objects.enums import DeviceStatus


class DeviceRepository(ABC):
    @abstractmethod
    async def save(self, device: Device) -> Device:
        ...

    @abstractmethod
    async def get_by_id(self, device_id: str) -> Device | None:
        ...

    @abstractmethod
    async def get_by_imei(self, imei: str) -> Device | None:
        ...

    @abstractmethod
    async def get_all(self, status: DeviceStatus | None = None) -> list[Device]:
        ...

    @abstractmethod
    async def update_status(
        self,
        device_id: str,
        status: DeviceStatus,
        assigned_to: str | None,
        clear_ticket: bool = False,
    ) -> bool:
        """Write custody status and assignee. Returns False if no row was updated."""
        ...
