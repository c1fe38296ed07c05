"""SimQuery value object — filters, sort and page of a SIM listing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from phonedesk.domain.value_objects.enums import SimProvider

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class SimSortField(str, Enum):
    ICC = "icc"
    IP = "ip"
    PROVIDER = "provider"
    STATUS = "status"
    DISTRIBUTOR = "distributor"


@dataclass(frozen=True)
class SimQuery:
    search: str | None = None
    status: str | None = None
    provider: SimProvider | None = None
    distributor_id: str | None = None
    # True/False select active/inactive carrier statuses; ignored when status is set
    active: bool | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    sort_by: SimSortField | None = None
    descending: bool = False

    @classmethod
    def from_params(
        cls,
        search: str | None = None,
        status: str | None = None,
        provider: str | None = None,
        distributor_id: str | None = None,
        is_active: str | None = None,
        limit: str | int | None = None,
        offset: str | int | None = None,
        sort_by: str | None = None,
        sort_direction: str | None = None,
    ) -> SimQuery:
        """Build a query from raw request parameters.

        Lenient throughout: unknown providers, sort fields and flags are
        ignored, and a bad or out-of-range page is clamped rather than
        rejected.
        """
        status = _clean(status)
        provider = _clean(provider)
        sort_by = _clean(sort_by)
        return cls(
            search=_clean(search),
            status=status,
            provider=SimProvider(provider) if provider in SimProvider.__members__ else None,
            distributor_id=_clean(distributor_id),
            active=None if status else {"true": True, "false": False}.get(is_active or ""),
            limit=min(max(_to_int(limit, DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE),
            offset=max(_to_int(offset, 0), 0),
            sort_by=SimSortField(sort_by) if sort_by in {f.value for f in SimSortField} else None,
            descending=sort_direction == "desc",
        )


def _clean(value: str | None) -> str | None:
    return (value or "").strip() or None


def _to_int(value: str | int | None, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
