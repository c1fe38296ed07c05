"""SotiDevice entity — display-only mirror of the MDM console record."""

from dataclasses import dataclass


@dataclass
class SotiDevice:
    id: str | None
    imei: str
    device_name: str | None = None
    status: str | None = None
    assigned_user: str | None = None
    is_active: bool = True
