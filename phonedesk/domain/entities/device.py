"""Device entity — a physical handset tracked by IMEI."""

from dataclasses import dataclass
from datetime import datetime

from phonedesk.domain.value_objects.enums import DeviceStatus


@dataclass
class Device:
    id: str | None
    imei: str
    status: DeviceStatus = DeviceStatus.NEW
    model_name: str | None = None
    assigned_to: str | None = None
    ticket_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_assigned(self) -> bool:
        return self.status == DeviceStatus.ASSIGNED

    def custody_consistent(self) -> bool:
        """assigned_to is set iff the device is ASSIGNED."""
        return (self.assigned_to is not None) == self.is_assigned()
