"""CSV loader — reads and normalizes the stock intake file."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from phonedesk.adapters.csv_loader.normalizer import (
    clean_string,
    normalize_column_name,
    normalize_device_status,
    normalize_imei,
)
from phonedesk.domain.value_objects.enums import DeviceStatus

logger = logging.getLogger(__name__)


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab) of spreadsheet exports."""
    if not sample:
        return csv.excel

    first_line = sample.splitlines()[0]
    delims = [";", ",", "\t"]
    counts = {d: first_line.count(d) for d in delims}
    best_delim = max(counts, key=counts.get)

    if counts[best_delim] > 0:
        class DynamicDialect(csv.excel):
            delimiter = best_delim
        return DynamicDialect
    return csv.excel


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization.

    Args:
        file_path: path to the CSV file.
        encoding: file encoding (utf-8-sig strips BOM automatically).

    Returns:
        List of dicts with normalized column names.
    """
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = [
            {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            for raw_row in reader
        ]

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def load_stock(file_path: Path) -> list[dict]:
    """Load and normalize the stock CSV.

    Expected columns (English or the sheet's Spanish headers):
        imei, model/modelo, status/estado, assigned_to/asignado, ticket
    Rows without a usable IMEI are skipped. Unknown statuses fall back to NEW.
    """
    rows = _read_csv(file_path)
    devices = []
    for line_no, row in enumerate(rows, start=2):
        imei = normalize_imei(row.get("imei"))
        if imei is None:
            logger.warning("Line %d: missing IMEI, skipping", line_no)
            continue

        raw_status = row.get("status") or row.get("estado")
        status = normalize_device_status(raw_status)
        if status is None:
            if raw_status:
                logger.warning("Line %d: unknown status %r, using NEW", line_no, raw_status)
            status = DeviceStatus.NEW

        assigned_to = clean_string(row.get("assigned_to") or row.get("asignado"))
        devices.append({
            "imei": imei,
            "model_name": clean_string(row.get("model") or row.get("modelo")),
            "status": status,
            # Custody invariant: only ASSIGNED devices carry an assignee
            "assigned_to": assigned_to if status == DeviceStatus.ASSIGNED else None,
            "ticket_id": clean_string(row.get("ticket") or row.get("ticket_id")),
        })
    logger.info("Parsed %d devices", len(devices))
    return devices
