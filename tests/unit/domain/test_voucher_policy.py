"""Tests for voucher id generation."""

import re
from datetime import datetime, timezone

from phonedesk.domain.policies.voucher import generate_voucher_id

NOW = datetime(2026, 10, 17, 23, 59, tzinfo=timezone.utc)


def test_voucher_format():
    voucher = generate_voucher_id(NOW)
    assert re.fullmatch(r"ENV-20261017-[A-Z0-9]{5}", voucher)


def test_voucher_custom_prefix_and_length():
    voucher = generate_voucher_id(NOW, prefix="SHP", length=8)
    assert re.fullmatch(r"SHP-20261017-[A-Z0-9]{8}", voucher)


def test_vouchers_are_not_repeated():
    vouchers = {generate_voucher_id(NOW) for _ in range(50)}
    assert len(vouchers) > 45
