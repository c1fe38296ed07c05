"""VoucherPolicy — shipping voucher identifiers."""

from __future__ import annotations

import secrets
import string
from datetime import datetime

_ALPHABET = string.ascii_uppercase + string.digits


def generate_voucher_id(now: datetime, prefix: str = "ENV", length: int = 5) -> str:
    """Build a voucher id such as ``ENV-20261017-7QX2M``.

    Args:
        now: issue time; only its date is used.
        prefix: voucher series prefix.
        length: size of the random suffix.
    """
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{prefix}-{now:%Y%m%d}-{suffix}"
