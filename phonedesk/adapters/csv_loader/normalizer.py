"""CSV value normalization — column names, blank cells, device status labels."""

from __future__ import annotations

import re
import unicodedata

from phonedesk.domain.value_objects.enums import DeviceStatus

# Labels used by the helpdesk stock sheet before statuses were standardized
LEGACY_STATUS_MAP: dict[str, DeviceStatus] = {
    "NUEVO": DeviceStatus.NEW,
    "ASIGNADO": DeviceStatus.ASSIGNED,
    "USADO": DeviceStatus.USED,
    "REPARADO": DeviceStatus.REPAIRED,
    "SIN_REPARACION": DeviceStatus.NOT_REPAIRED,
    "NO_REPARADO": DeviceStatus.NOT_REPAIRED,
    "EN_ANALISIS": DeviceStatus.ASSIGNED,
    "PERDIDO": DeviceStatus.LOST,
}


def _strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_column_name(name: str) -> str:
    """Normalize a CSV column name.

    - Removes BOM characters (\\ufeff) and accents
    - Replaces runs of spaces / non-breaking spaces with a single underscore
    - Lowercases and drops anything that is not alphanumeric or underscore
    """
    name = name.replace("\ufeff", "").strip()
    name = _strip_accents(name)
    name = re.sub(r"[\s\u00a0]+", "_", name)
    name = name.lower()
    return re.sub(r"[^\w]", "", name, flags=re.UNICODE)


def clean_string(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def normalize_device_status(raw: str | None) -> DeviceStatus | None:
    """Map a canonical or legacy status label to DeviceStatus.

    Accent- and case-insensitive; inner spaces count as underscores.
    Returns None when the label is unknown.
    """
    if not raw:
        return None
    key = re.sub(r"\s+", "_", _strip_accents(raw).strip().upper())
    if key in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[key]
    try:
        return DeviceStatus(key)
    except ValueError:
        return None


def normalize_imei(raw: str | None) -> str | None:
    """Keep digits only; spreadsheets often add spaces or dashes to IMEIs."""
    if not raw:
        return None
    digits = re.sub(r"\D", "", raw)
    return digits or None
