"""Distributor entity — the carrier or branch a device is shipped through."""

from dataclasses import dataclass


@dataclass
class Distributor:
    id: str | None
    name: str
    is_active: bool = True
