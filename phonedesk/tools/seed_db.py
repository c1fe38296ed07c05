"""Seed the device registry from a stock CSV file.

Usage:
    python -m phonedesk.tools.seed_db
    python -m phonedesk.tools.seed_db --csv data/stock.csv
    python -m phonedesk.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phonedesk.adapters.csv_loader.loader import load_stock
from phonedesk.adapters.persistence.database import async_session_factory
from phonedesk.adapters.persistence.models import (
    AssignmentModel,
    DeviceModel,
    DistributorModel,
    SimModel,
    SotiDeviceModel,
)
from phonedesk.config import settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [AssignmentModel, SimModel, SotiDeviceModel, DistributorModel, DeviceModel]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(
    csv_path: Path,
    drop: bool = False,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> dict[str, int]:
    """Insert devices from *csv_path*, skipping IMEIs already registered.

    Returns counts of inserted and skipped rows.
    """
    counts = {"devices": 0, "skipped": 0}
    rows = load_stock(csv_path)

    async with session_factory() as session:
        if drop:
            await _drop_data(session)

        seen: set[str] = set()
        for row in rows:
            imei = row["imei"]
            existing = await session.execute(select(DeviceModel.id).where(DeviceModel.imei == imei))
            if imei in seen or existing.scalar_one_or_none():
                logger.debug("Device %s already exists, skipping", imei)
                counts["skipped"] += 1
                continue
            seen.add(imei)

            session.add(DeviceModel(
                imei=imei,
                model_name=row["model_name"],
                status=row["status"].value,
                assigned_to=row["assigned_to"],
                ticket_id=row["ticket_id"],
            ))
            counts["devices"] += 1

        await session.commit()

    logger.info("Seed complete: %d devices inserted, %d skipped", counts["devices"], counts["skipped"])
    return counts


async def _verify_data() -> None:
    """Print the device count per status after seeding."""
    async with async_session_factory() as session:
        rows = (
            await session.execute(
                select(DeviceModel.status, func.count(DeviceModel.id)).group_by(DeviceModel.status)
            )
        ).all()

    print(f"\n{'=' * 40}")
    print("STOCK VERIFICATION")
    print(f"{'=' * 40}")
    for status, count in sorted(rows):
        print(f"{status:<14} {count}")
    print(f"{'=' * 40}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed the PhoneDesk device registry from a stock CSV")
    parser.add_argument(
        "--csv", type=str, default=settings.stock_csv_path,
        help=f"Stock CSV file (default: {settings.stock_csv_path})",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    csv_path = Path(args.csv)
    if not args.verify_only and not csv_path.exists():
        logger.error("Stock CSV not found: %s", csv_path)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(csv_path, drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
