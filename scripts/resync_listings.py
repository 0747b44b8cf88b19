#!/usr/bin/env python
"""Rebuild hotel listings from their stored property applications."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from listing_sync.config.settings import Settings
from listing_sync.core.logging import configure_logging
from listing_sync.services import PropertyNotFoundError, PropertyService
from listing_sync.storage import SqliteStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite database (default: LISTING_SQLITE_PATH or data/listings.sqlite3)",
    )
    parser.add_argument(
        "--listing-id",
        action="append",
        default=[],
        help="Listing id to re-sync; repeat for several. Omit to re-sync every property.",
    )
    return parser.parse_args()


async def resync(settings: Settings, listing_ids: list[str]) -> int:
    store = SqliteStore(
        settings.sqlite_path,
        busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        journal_mode=settings.sqlite_journal_mode,
        synchronous=settings.sqlite_synchronous,
    )
    await store.initialize()
    service = PropertyService(store, settings=settings)
    missing = 0
    try:
        if listing_ids:
            properties = []
            for listing_id in listing_ids:
                try:
                    properties.append(await service.resync(listing_id))
                except PropertyNotFoundError as exc:
                    print(f"{listing_id:30} | not found ({exc})")
                    missing += 1
        else:
            properties = await service.resync_all()

        active = set(await store.list_hotel_ids(active=True))
        for property in properties:
            state = "active" if property.listing_id in active else "inactive"
            print(f"{property.listing_id:30} | {property.status:10} | {state}")
    finally:
        await store.close()
    return 1 if missing else 0


def main() -> None:
    args = parse_args()
    settings = Settings(sqlite_path=args.db) if args.db is not None else Settings()
    configure_logging(settings.log_level, settings.log_dir)
    raise SystemExit(asyncio.run(resync(settings, args.listing_id)))


if __name__ == "__main__":
    main()
