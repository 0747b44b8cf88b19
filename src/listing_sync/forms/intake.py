"""Build property applications from submitted listing forms."""
from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from listing_sync.listings.models import Property
from listing_sync.utils.numbers import parse_number

from .decoder import FieldValue, PathKeyDecoder, first_value

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "propertyName",
    "propertyType",
    "receptionMobile",
    "ownerMobile",
    "receptionEmail",
    "ownerEmail",
    "city",
    "state",
    "address",
)

OPTIONAL_FIELDS = (
    "receptionLandline",
    "locality",
    "pincode",
    "landmark",
    "googleBusinessLink",
    "gstNo",
    "panNo",
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class SubmissionError(ValueError):
    """Raised when a listing form lacks required information."""

    def __init__(self, missing_fields: List[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}")
        self.missing_fields = missing_fields


@dataclass(slots=True)
class StoredDocuments:
    """Storage keys returned by the document uploader, forwarded verbatim."""

    gst_certificate: Optional[str] = None
    pan_card: Optional[str] = None
    property_images: List[str] = field(default_factory=list)


def generate_listing_id(prefix: str = "PROP") -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}{int(time.time() * 1000)}{suffix}"


def _string_field(fields: Mapping[str, FieldValue], name: str) -> str:
    return (first_value(fields.get(name)) or "").strip()


def _places_of_interest(decoder: PathKeyDecoder, fields: Mapping[str, FieldValue]) -> List[Dict[str, str]]:
    places: List[Dict[str, str]] = []
    for record in decoder.decode_indexed(fields, "placesOfInterest"):
        name = str(record.get("name") or "").strip()
        if not name:
            continue
        place = {"name": name}
        distance = str(record.get("distance") or "").strip()
        if distance:
            place["distance"] = distance
        places.append(place)
    return places


def build_property_from_form(
    fields: Mapping[str, FieldValue],
    *,
    decoder: PathKeyDecoder,
    documents: Optional[StoredDocuments] = None,
    listing_id: Optional[str] = None,
    listing_id_prefix: str = "PROP",
) -> Property:
    """Decode a submitted listing form into a pending :class:`Property`."""
    missing = [name for name in REQUIRED_FIELDS if not _string_field(fields, name)]
    if missing:
        logger.warning("Listing submission rejected; missing %s", ", ".join(missing))
        raise SubmissionError(missing)

    documents = documents or StoredDocuments()
    document: Dict[str, Any] = {
        "listingId": listing_id or generate_listing_id(listing_id_prefix),
        "status": "pending",
        "submittedAt": datetime.now(timezone.utc).isoformat(),
        "gstCertificate": documents.gst_certificate,
        "panCard": documents.pan_card,
        "propertyImages": list(documents.property_images),
        "overnightRooms": decoder.decode_records(fields, "overnightRooms"),
        "hourlyRooms": decoder.decode_records(fields, "hourlyRooms"),
        "packages": decoder.decode_records(fields, "packages"),
        "hotelAmenities": decoder.decode_array(fields, "hotelAmenities"),
        "roomAmenities": decoder.decode_array(fields, "roomAmenities"),
        "bookingTypeCategories": decoder.decode_array(fields, "bookingTypeCategories"),
        "placesOfInterest": _places_of_interest(decoder, fields),
        "latitude": parse_number(first_value(fields.get("latitude"))),
        "longitude": parse_number(first_value(fields.get("longitude"))),
    }
    for name in (*REQUIRED_FIELDS, *OPTIONAL_FIELDS):
        document[name] = _string_field(fields, name) or None

    property = Property.from_dict(document)
    logger.info(
        "Decoded listing %s (%s rooms, %s packages, %s places)",
        property.listing_id,
        len(property.overnight_rooms) + len(property.hourly_rooms),
        len(property.packages),
        len(property.places_of_interest),
    )
    return property
