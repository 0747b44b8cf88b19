from __future__ import annotations

import sqlite3

import pytest

from listing_sync.listings import HotelListing, Property, build_hotel_listing
from listing_sync.storage import DuplicateListingError, SqliteStore

_SYNCHRONOUS_MAP = {0: "off", 1: "normal", 2: "full", 3: "extra"}


def _hotel(hotel_id: str, *, city: str, price: int, amenities: list[str]) -> HotelListing:
    return HotelListing(
        hotel_id=hotel_id,
        name=f"Hotel {hotel_id}",
        city=city,
        locality=city,
        state="Goa",
        price=price,
        check_in_charge=100,
        has_pricing=True,
        stars=4,
        property_type="Hotel",
        amenities=amenities,
    )


@pytest.mark.asyncio
async def test_sqlite_store_persists_properties(tmp_path) -> None:
    db_path = tmp_path / "store.sqlite"
    store = SqliteStore(db_path)
    await store.initialize()

    property = Property.from_dict(
        {
            "listingId": "PROP1",
            "propertyName": "Sea Breeze",
            "status": "pending",
            "city": "Panaji",
            "receptionMobile": "9999999999",
            "packages": [{"duration": "Hourly", "category": "Deluxe", "hourlyCharge": 300, "spa": True}],
            "submittedAt": "2024-05-01T10:00:00+00:00",
        }
    )
    await store.insert_property(property)

    with pytest.raises(DuplicateListingError):
        await store.insert_property(property)

    loaded = await store.find_property("PROP1")
    assert loaded is not None
    assert loaded.to_dict() == property.to_dict()
    assert loaded.contact == {"receptionMobile": "9999999999"}
    assert loaded.packages[0].extra == {"spa": True}
    assert await store.find_property("missing") is None

    writer_sync_mode = store._require_connection().execute("PRAGMA synchronous").fetchone()[0]
    assert _SYNCHRONOUS_MAP[int(writer_sync_mode)] == "normal"

    await store.close()

    conn = sqlite3.connect(db_path)
    try:
        journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        assert journal_mode.lower() == "wal"
        cur = conn.execute("SELECT value FROM meta WHERE key='schema_version'")
        assert cur.fetchone()[0] == "2"
        cur = conn.execute("SELECT status FROM properties WHERE listing_id='PROP1'")
        assert cur.fetchone()[0] == "pending"
    finally:
        conn.close()


@pytest.mark.asyncio
async def test_update_property_merges_top_level_fields(tmp_path) -> None:
    store = SqliteStore(tmp_path / "update.sqlite")
    await store.initialize()
    await store.insert_property(
        Property.from_dict({"listingId": "PROP1", "propertyName": "Old", "city": "Panaji"})
    )

    updated = await store.update_property("PROP1", {"status": "approved", "listingId": "HIJACK"})

    assert updated is not None
    assert updated.listing_id == "PROP1"
    assert updated.status == "approved"
    assert updated.property_name == "Old"
    assert (await store.find_property("PROP1")).status == "approved"
    assert await store.update_property("missing", {"status": "approved"}) is None

    await store.close()


@pytest.mark.asyncio
async def test_list_properties_newest_first(tmp_path) -> None:
    store = SqliteStore(tmp_path / "list.sqlite")
    await store.initialize()
    await store.insert_property(Property.from_dict({"listingId": "OLD", "submittedAt": "2024-01-01T00:00:00+00:00"}))
    await store.insert_property(Property.from_dict({"listingId": "NEW", "submittedAt": "2024-06-01T00:00:00+00:00"}))

    properties = await store.list_properties()

    assert [property.listing_id for property in properties] == ["NEW", "OLD"]
    await store.close()


@pytest.mark.asyncio
async def test_search_hotels_filters_active_listings(tmp_path) -> None:
    store = SqliteStore(tmp_path / "search.sqlite")
    await store.initialize()
    await store.upsert_hotel(_hotel("H1", city="Panaji", price=800, amenities=["Pool", "AC"]))
    await store.upsert_hotel(_hotel("H2", city="Panaji", price=400, amenities=["AC"]))
    await store.upsert_hotel(_hotel("H3", city="Margao", price=300, amenities=["Pool"]))
    await store.upsert_hotel(_hotel("H4", city="Panaji", price=200, amenities=["Pool"]))
    assert await store.deactivate_hotel("H4") is True
    assert await store.deactivate_hotel("missing") is False

    by_city = await store.search_hotels(city="panaji")
    assert [hotel["hotelId"] for hotel in by_city] == ["H2", "H1"]

    with_pool = await store.search_hotels(amenities=["Pool"])
    assert [hotel["hotelId"] for hotel in with_pool] == ["H3", "H1"]

    in_range = await store.search_hotels(min_price=350, max_price=900)
    assert [hotel["hotelId"] for hotel in in_range] == ["H2", "H1"]

    assert await store.list_hotel_ids(active=False) == ["H4"]
    await store.close()


@pytest.mark.asyncio
async def test_upsert_replaces_amenity_index(tmp_path) -> None:
    store = SqliteStore(tmp_path / "amenities.sqlite")
    await store.initialize()
    await store.upsert_hotel(_hotel("H1", city="Panaji", price=500, amenities=["Pool"]))
    await store.upsert_hotel(_hotel("H1", city="Panaji", price=500, amenities=["Gym"]))

    assert await store.search_hotels(amenities=["Pool"]) == []
    assert [hotel["hotelId"] for hotel in await store.search_hotels(amenities=["Gym"])] == ["H1"]
    await store.close()


@pytest.mark.asyncio
async def test_upsert_accepts_derived_listing(tmp_path) -> None:
    store = SqliteStore(tmp_path / "derived.sqlite")
    await store.initialize()
    listing = build_hotel_listing(Property.from_dict({"listingId": "PROP9", "status": "approved"}))

    await store.upsert_hotel(listing)

    assert await store.find_hotel("PROP9") == listing.to_dict()
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_store_custom_pragmas(tmp_path) -> None:
    db_path = tmp_path / "custom.sqlite"
    store = SqliteStore(db_path, journal_mode="delete", synchronous="full")
    await store.initialize()

    writer_sync_mode = store._require_connection().execute("PRAGMA synchronous").fetchone()[0]
    assert _SYNCHRONOUS_MAP[int(writer_sync_mode)] == "full"

    await store.close()

    conn = sqlite3.connect(db_path)
    try:
        journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        synchronous_mode = conn.execute("PRAGMA synchronous").fetchone()[0]
        assert journal_mode.lower() == "delete"
        # synchronous is per-connection; a fresh connection reports the default
        assert _SYNCHRONOUS_MAP[int(synchronous_mode)] in {"full", "normal"}
    finally:
        conn.close()


def test_sqlite_store_rejects_unknown_pragmas(tmp_path) -> None:
    with pytest.raises(ValueError):
        SqliteStore(tmp_path / "bad.sqlite", journal_mode="sideways")
    with pytest.raises(ValueError):
        SqliteStore(tmp_path / "bad.sqlite", synchronous="sometimes")


@pytest.mark.asyncio
async def test_store_requires_initialisation(tmp_path) -> None:
    store = SqliteStore(tmp_path / "lazy.sqlite")

    with pytest.raises(RuntimeError):
        await store.find_property("PROP1")


@pytest.mark.asyncio
async def test_reopening_keeps_schema_and_data(tmp_path) -> None:
    db_path = tmp_path / "reopen.sqlite"
    store = SqliteStore(db_path, journal_mode=" ", synchronous=None)
    await store.initialize()
    await store.initialize()
    await store.insert_property(Property.from_dict({"listingId": "PROP1"}))
    await store.close()
    await store.close()

    reopened = SqliteStore(db_path)
    await reopened.initialize()
    assert (await reopened.find_property("PROP1")) is not None
    foreign_keys = reopened._require_connection().execute("PRAGMA foreign_keys").fetchone()[0]
    assert foreign_keys == 1
    await reopened.close()

    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT key, value FROM meta").fetchall()
        assert rows == [("schema_version", "2")]
    finally:
        conn.close()
