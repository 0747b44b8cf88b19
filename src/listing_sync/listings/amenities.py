"""Amenity normalisation across the historical ``roomAmenities`` encodings.

Rooms have stored their amenities as a flat list, a single string, a map of
amenity name to checkbox flag, and (current form) a map of room category to
amenity list. Everything downstream works on the output of
:func:`normalize_room_amenities` or the canonical map built by
:func:`canonical_room_amenities`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from .models import Property, RoomDetail

_TRUTHY_STRINGS = frozenset({"on", "true"})
_CHECKBOX_STRINGS = frozenset({"on", "true", "off", "false"})


def _is_flag_set(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 1
    return False


def _dedupe(names: Iterable[Any]) -> List[str]:
    seen: Dict[str, None] = {}
    for name in names:
        if not isinstance(name, str):
            continue
        stripped = name.strip()
        if stripped:
            seen.setdefault(stripped, None)
    return list(seen)


def _entry_names(entry: Any) -> Optional[List[Any]]:
    """Names held by a category entry, or ``None`` when the entry is a checkbox flag."""
    if isinstance(entry, (list, tuple)):
        return list(entry)
    if isinstance(entry, str) and entry.strip() and entry.strip().lower() not in _CHECKBOX_STRINGS:
        return [entry]
    return None


def normalize_room_amenities(value: Any, category: Optional[str]) -> List[str]:
    """Return the amenity names for ``category`` from any accepted encoding.

    * list of names: taken as-is (the room itself implies the category)
    * single string: one amenity
    * mapping: the names stored under the room's own category; when no key
      matches, the union of every category's names. A category entry is a
      list of names or a single name string. Entries whose value is a
      checkbox flag (``True``, ``"on"``, ``"true"``, ``1``) contribute their key.

    Any other shape yields no amenities. The input is never mutated.
    """
    if isinstance(value, (list, tuple)):
        return _dedupe(value)
    if isinstance(value, str):
        return _dedupe([value])
    if not isinstance(value, Mapping):
        return []

    own_category = (category or "").strip()
    own: List[Any] = []
    fallback: List[Any] = []
    flagged: List[str] = []
    matched = False
    for key, entry in value.items():
        key_text = str(key).strip()
        names = _entry_names(entry)
        if names is not None:
            fallback.extend(names)
            if key_text == own_category:
                own.extend(names)
                matched = True
        elif _is_flag_set(entry):
            flagged.append(key_text)
    return _dedupe([*(own if matched else fallback), *flagged])


def canonical_room_amenities(value: Any, category: Optional[str]) -> Dict[str, List[str]]:
    """Convert any accepted encoding into ``{category: [names]}``.

    Category entries are kept as name lists (trimmed and deduplicated); the
    room's own category always carries :func:`normalize_room_amenities` so that
    normalising the canonical form gives the same answer as normalising the
    stored value.
    """
    own_category = (category or "").strip()
    canonical: Dict[str, List[str]] = {}
    if isinstance(value, Mapping):
        for key, entry in value.items():
            key_text = str(key).strip()
            names = _entry_names(entry)
            if key_text and names is not None:
                canonical[key_text] = _dedupe(names)
    own = normalize_room_amenities(value, own_category)
    if own or own_category in canonical or not canonical:
        canonical[own_category] = own
    if not any(canonical.values()):
        return {}
    return canonical


def collect_hotel_amenities(property: "Property") -> List[str]:
    return _dedupe(property.hotel_amenities)


def collect_room_amenities(property: "Property") -> List[str]:
    """Union of legacy property-level room amenities and every room's amenities."""
    names: List[str] = list(property.room_amenities)
    for room in _iter_rooms(property):
        names.extend(normalize_room_amenities(room.room_amenities, room.category))
    return _dedupe(names)


def amenities_by_category(rooms: Iterable["RoomDetail"]) -> Dict[str, List[str]]:
    """Merge the canonical per-category lists of many rooms."""
    merged: Dict[str, List[str]] = {}
    for room in rooms:
        for category, names in room.room_amenities.items():
            if not category:
                continue
            merged[category] = _dedupe([*merged.get(category, []), *names])
    return merged


def merge_amenities(*groups: Iterable[str]) -> List[str]:
    """Flat union used for coarse "has X anywhere" filtering."""
    names: List[str] = []
    for group in groups:
        names.extend(group)
    return _dedupe(names)


def _iter_rooms(property: "Property") -> Iterable["RoomDetail"]:
    yield from property.overnight_rooms
    yield from property.hourly_rooms
