#!/usr/bin/env python
"""Store a captured listing form submission (JSON field map) as a pending application."""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from listing_sync.config.settings import Settings
from listing_sync.core.logging import configure_logging
from listing_sync.forms import StoredDocuments, SubmissionError
from listing_sync.services import PropertyService
from listing_sync.storage import SqliteStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("payload", type=Path, help="JSON object mapping form keys to a string or list of strings")
    parser.add_argument("--db", type=Path, default=None, help="Override LISTING_SQLITE_PATH")
    parser.add_argument("--image", action="append", default=[], help="Stored image key; repeat for several")
    return parser.parse_args()


async def run(settings: Settings, fields: dict[str, object], images: list[str]) -> None:
    store = SqliteStore(
        settings.sqlite_path,
        busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        journal_mode=settings.sqlite_journal_mode,
        synchronous=settings.sqlite_synchronous,
    )
    await store.initialize()
    try:
        service = PropertyService(store, settings=settings)
        property = await service.submit_application(fields, StoredDocuments(property_images=images))
        print(json.dumps(property.to_dict(), indent=2))
    finally:
        await store.close()


def main() -> None:
    args = parse_args()
    settings = Settings(sqlite_path=args.db) if args.db is not None else Settings()
    configure_logging(settings.log_level, settings.log_dir)
    fields = json.loads(args.payload.read_text())
    if not isinstance(fields, dict):
        raise SystemExit(f"{args.payload} must contain a JSON object")
    try:
        asyncio.run(run(settings, fields, args.image))
    except SubmissionError as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
