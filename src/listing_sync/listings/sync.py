"""Materialise public hotel listings from property applications."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Protocol

from listing_sync.utils.numbers import Number

from .amenities import collect_hotel_amenities, collect_room_amenities, merge_amenities
from .catalog import build_room_catalog
from .models import DURATION_DAY, DURATION_HOURLY, HotelListing, Property, RoomRate
from .pricing import DEFAULT_CHECK_IN_CHARGE, DEFAULT_PRICE, extract_pricing

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from listing_sync.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_STAR_RATING = 4
_PROPERTY_TYPES = ("Hotel", "Homestay", "Resort")


class HotelStore(Protocol):
    async def upsert_hotel(self, listing: HotelListing) -> None: ...

    async def deactivate_hotel(self, hotel_id: str) -> bool: ...


def _normalize_image(value: str) -> Optional[str]:
    image = value.strip()
    if not image:
        return None
    if image.startswith(("http://", "https://", "data:", "/")):
        return image
    return "/" + image.lstrip("/")


def _published_rooms(property: Property, catalog: List[RoomRate]) -> List[RoomRate]:
    if catalog:
        return catalog
    # Legacy listings without packages still publish their room categories.
    seen: dict[str, RoomRate] = {}
    for room in property.hourly_rooms:
        if room.category and room.category not in seen:
            seen[room.category] = RoomRate(category=room.category)
    return list(seen.values())


def build_hotel_listing(
    property: Property,
    *,
    default_price: Number = DEFAULT_PRICE,
    default_check_in_charge: Number = DEFAULT_CHECK_IN_CHARGE,
    default_stars: int = DEFAULT_STAR_RATING,
) -> HotelListing:
    """Derive the full active listing for ``property``.

    A pure function of the property: recomputing it never depends on what was
    stored before.
    """
    pricing = extract_pricing(
        property.packages,
        default_price=default_price,
        default_check_in_charge=default_check_in_charge,
    )
    hotel_amenities = collect_hotel_amenities(property)
    room_amenities = collect_room_amenities(property)
    catalog = build_room_catalog(
        property.packages,
        [*property.overnight_rooms, *property.hourly_rooms],
    )
    images = [image for image in map(_normalize_image, property.property_images) if image]
    city = property.city or "Unknown"
    property_type = property.property_type if property.property_type in _PROPERTY_TYPES else "Hotel"

    return HotelListing(
        hotel_id=property.listing_id,
        name=property.property_name or "Untitled Property",
        city=city,
        locality=property.locality or property.city or "City Center",
        state=property.state or property.city or "N/A",
        address=property.address,
        price=pricing.price,
        check_in_charge=pricing.check_in_charge,
        has_pricing=pricing.has_pricing,
        stars=default_stars,
        property_type=property_type,
        amenities=merge_amenities(hotel_amenities, room_amenities),
        hotel_amenities=hotel_amenities,
        room_amenities=room_amenities,
        images=images,
        description=f"{property.property_type} in {city}" if property.property_type else None,
        hourly_rooms=_published_rooms(property, catalog),
        places_of_interest=list(property.places_of_interest),
        latitude=property.latitude,
        longitude=property.longitude,
        available_for_hourly=DURATION_HOURLY in property.booking_type_categories,
        available_for_day=DURATION_DAY in property.booking_type_categories,
        is_active=True,
    )


class ListingSynchronizer:
    """Keeps the hotel listing of a property in line with its approval status.

    Approved properties get their listing rebuilt from scratch and upserted;
    any other status only flips the stored listing inactive. Failures are
    logged and swallowed: the property write that triggered the sync has
    already been committed and the listing stays stale until the next sync.
    """

    def __init__(self, store: HotelStore, *, settings: Optional["Settings"] = None) -> None:
        self._store = store
        self._default_price: Number = DEFAULT_PRICE
        self._default_check_in_charge: Number = DEFAULT_CHECK_IN_CHARGE
        self._default_stars = DEFAULT_STAR_RATING
        if settings is not None:
            self._default_price = settings.default_price
            self._default_check_in_charge = settings.default_check_in_charge
            self._default_stars = settings.default_star_rating

    def build(self, property: Property) -> HotelListing:
        return build_hotel_listing(
            property,
            default_price=self._default_price,
            default_check_in_charge=self._default_check_in_charge,
            default_stars=self._default_stars,
        )

    async def sync(self, property: Property) -> None:
        if not property.listing_id:
            logger.warning("Skipping listing sync for property without listingId")
            return
        try:
            if property.is_approved:
                listing = self.build(property)
                await self._store.upsert_hotel(listing)
                logger.info(
                    "Synced hotel %s (price=%s, check-in=%s, rooms=%d)",
                    listing.hotel_id,
                    listing.price,
                    listing.check_in_charge,
                    len(listing.hourly_rooms),
                )
            else:
                existed = await self._store.deactivate_hotel(property.listing_id)
                if existed:
                    logger.info("Deactivated hotel %s (status=%s)", property.listing_id, property.status)
        except Exception:  # noqa: BLE001
            logger.exception("Listing sync failed for property %s", property.listing_id)
