"""SQLite-backed persistence for property applications and hotel listings."""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from listing_sync.listings.models import HotelListing, Property

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SCHEMA_VERSION = 2

# Allowed values per configurable pragma; ``None`` or blank keeps SQLite's default.
PRAGMA_CHOICES = {
    "journal_mode": frozenset({"delete", "truncate", "persist", "memory", "wal", "off"}),
    "synchronous": frozenset({"off", "normal", "full", "extra"}),
}

# Stays below SQLite's default bound-parameter limit together with the other filters.
MAX_AMENITY_FILTERS = 900

logger = logging.getLogger(__name__)


class DuplicateListingError(RuntimeError):
    """Raised when a property is inserted under an existing listing id."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)


def _bool(value: Any) -> int:
    return 1 if bool(value) else 0


def _pragma_value(name: str, value: str | None) -> str | None:
    mode = (value or "").strip().lower()
    if not mode:
        return None
    allowed = PRAGMA_CHOICES[name]
    if mode not in allowed:
        raise ValueError(f"Unsupported SQLite {name} '{value}'. Expected one of: {sorted(allowed)}")
    return mode


def _schema_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT value FROM meta WHERE key='schema_version'").fetchone()
    try:
        return int(row[0]) if row else 0
    except (TypeError, ValueError):
        return 0


class SqliteStore:
    """Thin async wrapper over sqlite3 for properties and their hotel listings.

    Every hotel write replaces the whole stored document for its ``hotel_id``
    inside one transaction, so concurrent syncs of the same listing resolve to
    the last writer.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 2000,
        journal_mode: str | None = "wal",
        synchronous: str | None = "normal",
    ) -> None:
        self._path = db_path
        self._pragmas: list[tuple[str, object]] = [
            ("foreign_keys", "ON"),
            ("busy_timeout", int(max(busy_timeout_ms, 0))),
        ]
        for name, value in (("journal_mode", journal_mode), ("synchronous", synchronous)):
            mode = _pragma_value(name, value)
            if mode:
                self._pragmas.append((name, mode.upper()))
        self._connection: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # lifecycle

    async def initialize(self) -> None:
        async with self._lock:
            if self._connection is None:
                self._connection = await asyncio.to_thread(self._open_connection)

    async def close(self) -> None:
        conn, self._connection = self._connection, None
        if conn is not None:
            await asyncio.to_thread(conn.close)

    def _open_connection(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, check_same_thread=False)
        try:
            for name, value in self._pragmas:
                conn.execute(f"PRAGMA {name} = {value};")
            self._migrate(conn)
        except sqlite3.OperationalError as exc:
            conn.close()
            logger.error("Could not open listing database %s: %s", self._path, exc)
            raise
        return conn

    def _migrate(self, conn: sqlite3.Connection) -> None:
        conn.execute("CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        current = _schema_version(conn)
        for version in range(current + 1, SCHEMA_VERSION + 1):
            script = MIGRATIONS.get(version)
            if not script:
                raise RuntimeError(f"Missing migration script for version {version}")
            conn.executescript(script)
            conn.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (str(version),),
            )
            logger.debug("Applied listing schema migration %d", version)
        conn.commit()

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise RuntimeError("SQLite store has not been initialised")
        return self._connection

    # ------------------------------------------------------------------
    # properties

    async def insert_property(self, property: Property) -> Property:
        """Persist a new application; the listing id must not exist yet."""

        def _op() -> None:
            conn = self._require_connection()
            now = _utc_now()
            document = property.to_dict()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO properties(listing_id, status, document_json, submitted_at, created_at, updated_at)
                        VALUES(?, ?, ?, ?, ?, ?)
                        """,
                        (
                            property.listing_id,
                            property.status,
                            _json_dumps(document),
                            document.get("submittedAt") or now,
                            now,
                            now,
                        ),
                    )
            except sqlite3.IntegrityError as exc:
                raise DuplicateListingError(f"Listing id {property.listing_id} already exists") from exc

        async with self._lock:
            await asyncio.to_thread(_op)
        return property

    async def find_property(self, listing_id: str) -> Property | None:
        def _op() -> Property | None:
            conn = self._require_connection()
            row = conn.execute(
                "SELECT document_json FROM properties WHERE listing_id=?",
                (listing_id,),
            ).fetchone()
            if not row:
                return None
            return Property.from_dict(json.loads(row[0]))

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def list_properties(self) -> list[Property]:
        """Return every application, newest submission first."""

        def _op() -> list[Property]:
            conn = self._require_connection()
            cursor = conn.execute(
                "SELECT document_json FROM properties ORDER BY submitted_at DESC, listing_id ASC"
            )
            return [Property.from_dict(json.loads(row[0])) for row in cursor.fetchall()]

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def update_property(self, listing_id: str, changes: Mapping[str, Any]) -> Property | None:
        """Merge top-level ``changes`` into the stored application.

        Returns the updated property, or ``None`` when the listing is unknown.
        The listing id itself cannot be changed.
        """

        def _op() -> Property | None:
            conn = self._require_connection()
            with conn:
                row = conn.execute(
                    "SELECT document_json FROM properties WHERE listing_id=?",
                    (listing_id,),
                ).fetchone()
                if not row:
                    return None
                document = json.loads(row[0])
                document.update({key: value for key, value in changes.items() if key != "listingId"})
                document["listingId"] = listing_id
                updated = Property.from_dict(document)
                conn.execute(
                    """
                    UPDATE properties SET status=?, document_json=?, updated_at=? WHERE listing_id=?
                    """,
                    (updated.status, _json_dumps(updated.to_dict()), _utc_now(), listing_id),
                )
                return updated

        async with self._lock:
            return await asyncio.to_thread(_op)

    # ------------------------------------------------------------------
    # hotels

    async def upsert_hotel(self, listing: HotelListing) -> None:
        """Replace the stored listing for ``listing.hotel_id`` with ``listing``."""

        def _op() -> None:
            conn = self._require_connection()
            now = _utc_now()
            document = listing.to_dict()
            with conn:
                conn.execute(
                    """
                    INSERT INTO hotels(hotel_id, is_active, price, check_in_charge, city, document_json, created_at, updated_at)
                    VALUES(?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(hotel_id) DO UPDATE SET
                        is_active=excluded.is_active,
                        price=excluded.price,
                        check_in_charge=excluded.check_in_charge,
                        city=excluded.city,
                        document_json=excluded.document_json,
                        updated_at=excluded.updated_at
                    """,
                    (
                        listing.hotel_id,
                        _bool(listing.is_active),
                        listing.price,
                        listing.check_in_charge,
                        listing.city,
                        _json_dumps(document),
                        now,
                        now,
                    ),
                )
                conn.execute("DELETE FROM hotel_amenities WHERE hotel_id=?", (listing.hotel_id,))
                conn.executemany(
                    "INSERT OR IGNORE INTO hotel_amenities(hotel_id, amenity) VALUES(?, ?)",
                    [(listing.hotel_id, amenity) for amenity in listing.amenities],
                )

        async with self._lock:
            await asyncio.to_thread(_op)

    async def deactivate_hotel(self, hotel_id: str) -> bool:
        """Flip a listing inactive, keeping its other fields. Returns whether it existed."""

        def _op() -> bool:
            conn = self._require_connection()
            with conn:
                row = conn.execute(
                    "SELECT document_json FROM hotels WHERE hotel_id=?",
                    (hotel_id,),
                ).fetchone()
                if not row:
                    return False
                document = json.loads(row[0])
                document["isActive"] = False
                conn.execute(
                    "UPDATE hotels SET is_active=0, document_json=?, updated_at=? WHERE hotel_id=?",
                    (_json_dumps(document), _utc_now(), hotel_id),
                )
                return True

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def find_hotel(self, hotel_id: str) -> dict[str, Any] | None:
        def _op() -> dict[str, Any] | None:
            conn = self._require_connection()
            row = conn.execute(
                "SELECT document_json FROM hotels WHERE hotel_id=?",
                (hotel_id,),
            ).fetchone()
            return json.loads(row[0]) if row else None

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def fetch_hotel_json(self, hotel_id: str) -> str | None:
        """Return the stored listing document exactly as persisted."""

        def _op() -> str | None:
            conn = self._require_connection()
            row = conn.execute(
                "SELECT document_json FROM hotels WHERE hotel_id=?",
                (hotel_id,),
            ).fetchone()
            return row[0] if row else None

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def search_hotels(
        self,
        *,
        city: str | None = None,
        amenities: Sequence[str] = (),
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[dict[str, Any]]:
        """Active listings matching the filters, cheapest first.

        ``amenities`` matches listings offering at least one of the names.
        """

        def _op() -> list[dict[str, Any]]:
            conn = self._require_connection()
            clauses = ["h.is_active=1"]
            params: list[Any] = []
            if city:
                clauses.append("LOWER(h.city)=LOWER(?)")
                params.append(city)
            if min_price is not None:
                clauses.append("h.price>=?")
                params.append(min_price)
            if max_price is not None:
                clauses.append("h.price<=?")
                params.append(max_price)
            wanted = list(dict.fromkeys(amenities))[:MAX_AMENITY_FILTERS]
            if wanted:
                placeholders = ",".join("?" for _ in wanted)
                clauses.append(
                    f"EXISTS (SELECT 1 FROM hotel_amenities a WHERE a.hotel_id=h.hotel_id AND a.amenity IN ({placeholders}))"
                )
                params.extend(wanted)
            cursor = conn.execute(
                f"""
                SELECT h.document_json FROM hotels h
                WHERE {' AND '.join(clauses)}
                ORDER BY h.price ASC, h.hotel_id ASC
                """,
                params,
            )
            return [json.loads(row[0]) for row in cursor.fetchall()]

        async with self._lock:
            return await asyncio.to_thread(_op)

    async def list_hotel_ids(self, *, active: bool | None = None) -> list[str]:
        def _op() -> list[str]:
            conn = self._require_connection()
            if active is None:
                cursor = conn.execute("SELECT hotel_id FROM hotels ORDER BY hotel_id")
            else:
                cursor = conn.execute(
                    "SELECT hotel_id FROM hotels WHERE is_active=? ORDER BY hotel_id",
                    (_bool(active),),
                )
            return [row[0] for row in cursor.fetchall()]

        async with self._lock:
            return await asyncio.to_thread(_op)


MIGRATIONS = {
    1: """
        CREATE TABLE IF NOT EXISTS properties (
            listing_id TEXT PRIMARY KEY,
            status TEXT NOT NULL,
            document_json TEXT NOT NULL,
            submitted_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_properties_status ON properties(status);

        CREATE TABLE IF NOT EXISTS hotels (
            hotel_id TEXT PRIMARY KEY,
            is_active INTEGER NOT NULL,
            price REAL NOT NULL,
            check_in_charge REAL NOT NULL,
            city TEXT,
            document_json TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_hotels_active_price ON hotels(is_active, price);
        CREATE INDEX IF NOT EXISTS idx_hotels_city ON hotels(city);
    """,
    2: """
        CREATE TABLE IF NOT EXISTS hotel_amenities (
            hotel_id TEXT NOT NULL REFERENCES hotels(hotel_id) ON DELETE CASCADE,
            amenity TEXT NOT NULL,
            PRIMARY KEY (hotel_id, amenity)
        );
        CREATE INDEX IF NOT EXISTS idx_hotel_amenities_value ON hotel_amenities(amenity);
    """,
}
