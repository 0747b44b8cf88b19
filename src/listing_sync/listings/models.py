"""Dataclasses for property applications and the hotel listings derived from them."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from listing_sync.utils.numbers import Number, parse_number

from .amenities import canonical_room_amenities

PROPERTY_STATUSES = ("pending", "approved", "rejected")
APPROVED = "approved"

DURATION_HOURLY = "Hourly"
DURATION_DAY = "Day"
DURATION_NIGHT = "Night"
DURATION_24_HOURS = "24 hours"


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    names: List[str] = []
    for value in values:
        text = _text(value)
        if text:
            names.append(text)
    return names


def _records(values: Any) -> List[Mapping[str, Any]]:
    if not isinstance(values, (list, tuple)):
        return []
    return [value for value in values if isinstance(value, Mapping)]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(slots=True)
class RoomDetail:
    """One room category definition, with amenities in canonical form."""

    category: Optional[str] = None
    room_amenities: Dict[str, List[str]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoomDetail":
        category = _text(data.get("category"))
        extra = {key: value for key, value in data.items() if key not in ("category", "roomAmenities")}
        return cls(
            category=category,
            room_amenities=canonical_room_amenities(data.get("roomAmenities"), category),
            extra=extra,
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = dict(self.extra)
        if self.category is not None:
            payload["category"] = self.category
        if self.room_amenities:
            payload["roomAmenities"] = {key: list(names) for key, names in self.room_amenities.items()}
        return payload


@dataclass(slots=True)
class PackageDetail:
    """One rate rule tying a duration and room category to charges.

    Inclusion flags (breakfast, spa, ...) and any other fields ride along in
    ``extra`` untouched.
    """

    duration: Optional[str] = None
    category: Optional[str] = None
    hourly_charge: Optional[Number] = None
    check_in_charge: Optional[Number] = None
    charges: Dict[str, Dict[str, Optional[Number]]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageDetail":
        charges: Dict[str, Dict[str, Optional[Number]]] = {}
        raw_charges = data.get("charges")
        if isinstance(raw_charges, Mapping):
            for key, entry in raw_charges.items():
                category = _text(key)
                if not category or not isinstance(entry, Mapping):
                    continue
                charges[category] = {
                    "hourlyCharge": parse_number(entry.get("hourlyCharge")),
                    "checkInCharge": parse_number(entry.get("checkInCharge")),
                }
        known = ("duration", "category", "hourlyCharge", "checkInCharge", "charges")
        return cls(
            duration=_text(data.get("duration")),
            category=_text(data.get("category")),
            hourly_charge=parse_number(data.get("hourlyCharge")),
            check_in_charge=parse_number(data.get("checkInCharge")),
            charges=charges,
            extra={key: value for key, value in data.items() if key not in known},
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = dict(self.extra)
        payload.update(
            _drop_none(
                {
                    "duration": self.duration,
                    "category": self.category,
                    "hourlyCharge": self.hourly_charge,
                    "checkInCharge": self.check_in_charge,
                }
            )
        )
        if self.charges:
            payload["charges"] = {key: dict(value) for key, value in self.charges.items()}
        return payload


@dataclass(slots=True)
class PlaceOfInterest:
    name: str
    distance: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["PlaceOfInterest"]:
        name = _text(data.get("name"))
        if not name:
            return None
        return cls(name=name, distance=_text(data.get("distance")))

    def to_dict(self) -> dict[str, object]:
        return _drop_none({"name": self.name, "distance": self.distance})


@dataclass(slots=True)
class Property:
    """An owner-submitted listing application; the source of truth for a hotel."""

    listing_id: str
    property_name: Optional[str] = None
    property_type: Optional[str] = None
    status: str = "pending"
    city: Optional[str] = None
    locality: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    contact: Dict[str, str] = field(default_factory=dict)
    gst_certificate: Optional[str] = None
    pan_card: Optional[str] = None
    property_images: List[str] = field(default_factory=list)
    overnight_rooms: List[RoomDetail] = field(default_factory=list)
    hourly_rooms: List[RoomDetail] = field(default_factory=list)
    packages: List[PackageDetail] = field(default_factory=list)
    hotel_amenities: List[str] = field(default_factory=list)
    room_amenities: List[str] = field(default_factory=list)
    booking_type_categories: List[str] = field(default_factory=list)
    places_of_interest: List[PlaceOfInterest] = field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    submitted_at: Optional[datetime] = None

    CONTACT_FIELDS = (
        "receptionMobile",
        "ownerMobile",
        "receptionLandline",
        "receptionEmail",
        "ownerEmail",
        "pincode",
        "landmark",
        "googleBusinessLink",
        "gstNo",
        "panNo",
    )

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Property":
        places = [PlaceOfInterest.from_dict(entry) for entry in _records(data.get("placesOfInterest"))]
        contact: Dict[str, str] = {}
        for name in cls.CONTACT_FIELDS:
            text = _text(data.get(name))
            if text is not None:
                contact[name] = text
        latitude = parse_number(data.get("latitude"))
        longitude = parse_number(data.get("longitude"))
        return cls(
            listing_id=_text(data.get("listingId")) or "",
            property_name=_text(data.get("propertyName")),
            property_type=_text(data.get("propertyType")),
            status=_text(data.get("status")) or "pending",
            city=_text(data.get("city")),
            locality=_text(data.get("locality")),
            state=_text(data.get("state")),
            address=_text(data.get("address")),
            contact=contact,
            gst_certificate=_text(data.get("gstCertificate")),
            pan_card=_text(data.get("panCard")),
            property_images=_string_list(data.get("propertyImages")),
            overnight_rooms=[RoomDetail.from_dict(entry) for entry in _records(data.get("overnightRooms"))],
            hourly_rooms=[RoomDetail.from_dict(entry) for entry in _records(data.get("hourlyRooms"))],
            packages=[PackageDetail.from_dict(entry) for entry in _records(data.get("packages"))],
            hotel_amenities=_string_list(data.get("hotelAmenities")),
            room_amenities=_string_list(data.get("roomAmenities")),
            booking_type_categories=_string_list(data.get("bookingTypeCategories")),
            places_of_interest=[place for place in places if place is not None],
            latitude=float(latitude) if latitude is not None else None,
            longitude=float(longitude) if longitude is not None else None,
            submitted_at=_parse_timestamp(data.get("submittedAt")),
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "listingId": self.listing_id,
            "propertyName": self.property_name,
            "propertyType": self.property_type,
            "status": self.status,
            "city": self.city,
            "locality": self.locality,
            "state": self.state,
            "address": self.address,
            **self.contact,
            "gstCertificate": self.gst_certificate,
            "panCard": self.pan_card,
            "propertyImages": list(self.property_images),
            "overnightRooms": [room.to_dict() for room in self.overnight_rooms],
            "hourlyRooms": [room.to_dict() for room in self.hourly_rooms],
            "packages": [package.to_dict() for package in self.packages],
            "hotelAmenities": list(self.hotel_amenities),
            "roomAmenities": list(self.room_amenities),
            "bookingTypeCategories": list(self.booking_type_categories),
            "placesOfInterest": [place.to_dict() for place in self.places_of_interest],
            "latitude": self.latitude,
            "longitude": self.longitude,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
        }
        return _drop_none(payload)


@dataclass(slots=True)
class Pricing:
    """Headline figures shown on a search result card."""

    price: Number
    check_in_charge: Number
    has_pricing: bool = False


@dataclass(slots=True)
class RoomRate:
    """Per-category rate sheet published on a hotel listing."""

    category: str
    hourly_charge: Optional[Number] = None
    check_in_charge: Optional[Number] = None
    day_charge: Optional[Number] = None
    night_charge: Optional[Number] = None
    charge_24_hours: Optional[Number] = None
    room_amenities: Optional[List[str]] = None

    def to_dict(self) -> dict[str, object]:
        payload = _drop_none(
            {
                "category": self.category,
                "hourlyCharge": self.hourly_charge,
                "checkInCharge": self.check_in_charge,
                "dayCharge": self.day_charge,
                "nightCharge": self.night_charge,
                "charge24Hours": self.charge_24_hours,
            }
        )
        if self.room_amenities is not None:
            payload["roomAmenities"] = list(self.room_amenities)
        return payload


@dataclass(slots=True)
class HotelListing:
    """Search-facing projection of an approved property, keyed by ``hotel_id``."""

    hotel_id: str
    name: str
    city: str
    locality: str
    state: str
    price: Number
    check_in_charge: Number
    has_pricing: bool
    stars: int
    property_type: str
    address: Optional[str] = None
    amenities: List[str] = field(default_factory=list)
    hotel_amenities: List[str] = field(default_factory=list)
    room_amenities: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    description: Optional[str] = None
    hourly_rooms: List[RoomRate] = field(default_factory=list)
    places_of_interest: List[PlaceOfInterest] = field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    available_for_hourly: bool = False
    available_for_day: bool = False
    is_active: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "hotelId": self.hotel_id,
            "name": self.name,
            "city": self.city,
            "locality": self.locality,
            "state": self.state,
            "address": self.address,
            "price": self.price,
            "checkInCharge": self.check_in_charge,
            "hasPricing": self.has_pricing,
            "stars": self.stars,
            "amenities": list(self.amenities),
            "hotelAmenities": list(self.hotel_amenities),
            "roomAmenities": list(self.room_amenities),
            "images": list(self.images),
            "description": self.description,
            "propertyType": self.property_type,
            "hourlyRooms": [room.to_dict() for room in self.hourly_rooms],
            "placesOfInterest": [place.to_dict() for place in self.places_of_interest],
            "latitude": self.latitude,
            "longitude": self.longitude,
            "availableForHourly": self.available_for_hourly,
            "availableForDay": self.available_for_day,
            "isActive": self.is_active,
        }

    @classmethod
    def from_iterable(cls, records: Iterable["HotelListing"]) -> List[dict[str, object]]:
        return [record.to_dict() for record in records]
