"""Per-category rate sheets built from rate packages."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from listing_sync.utils.numbers import Number

from .amenities import amenities_by_category
from .models import (
    DURATION_24_HOURS,
    DURATION_DAY,
    DURATION_HOURLY,
    DURATION_NIGHT,
    RoomDetail,
    RoomRate,
    PackageDetail,
)

logger = logging.getLogger(__name__)

# Day, Night and 24-hour packages carry the whole stay in their check-in charge.
_STAY_CHARGE_FIELDS = {
    DURATION_DAY: "day_charge",
    DURATION_NIGHT: "night_charge",
    DURATION_24_HOURS: "charge_24_hours",
}


def _apply_charges(
    entry: RoomRate,
    duration: Optional[str],
    hourly_charge: Optional[Number],
    check_in_charge: Optional[Number],
) -> None:
    if duration == DURATION_HOURLY:
        if hourly_charge is not None:
            entry.hourly_charge = hourly_charge
        if check_in_charge is not None:
            entry.check_in_charge = check_in_charge
        return
    field_name = _STAY_CHARGE_FIELDS.get(duration or "")
    if field_name is None:
        logger.debug("Skipping package with unsupported duration %r", duration)
        return
    if check_in_charge is not None:
        setattr(entry, field_name, check_in_charge)


def build_room_catalog(
    packages: Iterable[PackageDetail],
    rooms: Iterable[RoomDetail] = (),
) -> List[RoomRate]:
    """Group packages by room category into one rate sheet per category.

    For each (category, duration) pair the last package processed wins, so the
    sheet mirrors what the owner most recently entered. Packages without a
    category are skipped. When ``rooms`` are given every entry also carries the
    amenities recorded for its category.
    """
    catalog: Dict[str, RoomRate] = {}

    def _entry(category: str) -> RoomRate:
        entry = catalog.get(category)
        if entry is None:
            entry = RoomRate(category=category)
            catalog[category] = entry
        return entry

    for package in packages:
        for category, charges in package.charges.items():
            _apply_charges(
                _entry(category),
                package.duration,
                charges.get("hourlyCharge"),
                charges.get("checkInCharge"),
            )
        if not package.category:
            continue
        _apply_charges(
            _entry(package.category),
            package.duration,
            package.hourly_charge,
            package.check_in_charge,
        )

    room_list = list(rooms)
    if room_list:
        for category, names in amenities_by_category(room_list).items():
            _entry(category).room_amenities = list(names)
    return list(catalog.values())
