"""ClosureRecord value object — metadata stored when an assignment closes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime

from phonedesk.domain.value_objects.enums import DeviceStatus

CLOSURE_RECORD_VERSION = 1

_FIXED_KEYS = {"version", "reason", "resulting_device_status", "closed_at", "extensions"}
LEGACY_EXTENSIONS_KEY = "extensions_legacy"


@dataclass(frozen=True)
class ClosureRecord:
    """Versioned, fixed-shape closure metadata.

    Unknown keys found in previously stored content are kept in
    ``extensions`` and never override the fixed fields.
    """

    reason: str | None
    resulting_device_status: DeviceStatus
    closed_at: datetime
    extensions: dict = field(default_factory=dict)
    version: int = CLOSURE_RECORD_VERSION

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "reason": self.reason,
            "resulting_device_status": self.resulting_device_status.value,
            "closed_at": self.closed_at.isoformat(),
            "extensions": dict(self.extensions),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)

    @classmethod
    def from_json(cls, raw: str | None) -> ClosureRecord | None:
        """Parse stored closure content.

        Returns None for empty content or for content that is not a complete
        record (legacy plain-text reasons, partial objects).
        """
        payload = parse_closure_payload(raw)
        if payload is None:
            return None
        try:
            status = DeviceStatus(payload["resulting_device_status"])
            closed_at = datetime.fromisoformat(payload["closed_at"])
            version = int(payload.get("version", CLOSURE_RECORD_VERSION))
        except (KeyError, TypeError, ValueError):
            return None
        return cls(
            reason=payload.get("reason"),
            resulting_device_status=status,
            closed_at=closed_at,
            extensions=carried_extensions(payload),
            version=version,
        )


def parse_closure_payload(raw: str | None) -> dict | None:
    """Read stored closure content as a dict.

    A legacy plain-text reason becomes ``{"reason": <text>}``.
    """
    if not raw or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"reason": raw.strip()}
    if isinstance(parsed, dict):
        return parsed
    return {"reason": raw.strip()}


def carried_extensions(payload: dict | None) -> dict:
    """Extension keys of a previous payload: its ``extensions`` map plus any unknown top-level keys."""
    if not payload:
        return {}
    raw = payload.get("extensions")
    if isinstance(raw, dict):
        extensions = dict(raw)
    else:
        # A non-map value from older content is kept as-is under its own key
        extensions = {} if raw is None else {LEGACY_EXTENSIONS_KEY: raw}
    for key, value in payload.items():
        if key not in _FIXED_KEYS:
            extensions.setdefault(key, value)
    return extensions
