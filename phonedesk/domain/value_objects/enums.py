"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class DeviceStatus(str, Enum):
    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    USED = "USED"
    REPAIRED = "REPAIRED"
    NOT_REPAIRED = "NOT_REPAIRED"
    LOST = "LOST"


# Statuses a device may be released into when its assignment closes.
RELEASABLE_STATUSES: frozenset[DeviceStatus] = frozenset({
    DeviceStatus.USED,
    DeviceStatus.REPAIRED,
    DeviceStatus.NOT_REPAIRED,
    DeviceStatus.LOST,
})


class AssignmentType(str, Enum):
    ASSIGN = "ASSIGN"
    REPLACE = "REPLACE"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ShippingStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class ReturnStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"


class SimProvider(str, Enum):
    CLARO = "CLARO"
    MOVISTAR = "MOVISTAR"


# Carrier status labels counted as an active line.
ACTIVE_SIM_STATUSES: tuple[str, ...] = ("Activado", "Active")
