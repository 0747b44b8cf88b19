"""Property applications and the hotel listings derived from them."""

from .amenities import (
    canonical_room_amenities,
    collect_hotel_amenities,
    collect_room_amenities,
    merge_amenities,
    normalize_room_amenities,
)
from .catalog import build_room_catalog
from .models import (
    HotelListing,
    PackageDetail,
    PlaceOfInterest,
    Pricing,
    Property,
    RoomDetail,
    RoomRate,
)
from .pricing import extract_pricing
from .sync import ListingSynchronizer, build_hotel_listing

__all__ = [
    "HotelListing",
    "ListingSynchronizer",
    "PackageDetail",
    "PlaceOfInterest",
    "Pricing",
    "Property",
    "RoomDetail",
    "RoomRate",
    "build_hotel_listing",
    "build_room_catalog",
    "canonical_room_amenities",
    "collect_hotel_amenities",
    "collect_room_amenities",
    "extract_pricing",
    "merge_amenities",
    "normalize_room_amenities",
]
