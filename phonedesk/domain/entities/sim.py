"""Sim entity — read-only record of a carrier line, kept in sync by an outside job."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Sim:
    id: str | None
    icc: str
    status: str
    provider: str
    ip: str | None = None
    distributor_id: str | None = None
    distributor_name: str | None = None
    # Set on every synced row; active/inactive follows the carrier status
    is_active: bool = True
    last_sync: datetime | None = None
