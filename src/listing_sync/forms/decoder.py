"""Decode bracket-path form fields into nested records.

Multipart submissions flatten nested structures into keys such as
``packages[package_0][hourlyCharge]`` or
``overnightRooms[room_0][roomAmenities][Deluxe][]``. The decoder folds those
keys back into one dictionary per record. Keys that do not follow the grammar
are skipped: form producers evolve independently of this parser.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from listing_sync.utils.numbers import parse_number

logger = logging.getLogger(__name__)

FieldValue = Union[str, Sequence[str]]

_TRUE_STRINGS = frozenset({"on", "true"})

DEFAULT_BOOLEAN_MARKERS: tuple[str, ...] = (
    "Decorate",
    "Drink",
    "Dinner",
    "breakfast",
    "buffet",
    "alacarte",
    "spa",
)

DEFAULT_NUMERIC_MARKERS: tuple[str, ...] = (
    "rate",
    "Rate",
    "charge",
    "Charge",
    "Occupancy",
    "Children",
    "children",
    "nights",
    "days",
)

DEFAULT_TEXT_FIELDS: tuple[str, ...] = ("ratePlan", "category", "duration", "inclusions")


def _values(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw if item is not None]
    return [str(raw)]


def first_value(raw: Any) -> Optional[str]:
    """Return the first value of a possibly multi-valued field."""
    values = _values(raw)
    return values[0] if values else None


@dataclass(frozen=True)
class FieldCoercion:
    """Rules deciding how scalar record fields are typed."""

    boolean_markers: tuple[str, ...] = DEFAULT_BOOLEAN_MARKERS
    numeric_markers: tuple[str, ...] = DEFAULT_NUMERIC_MARKERS
    text_fields: tuple[str, ...] = DEFAULT_TEXT_FIELDS

    def is_boolean(self, field_name: str) -> bool:
        if field_name in self.text_fields:
            return False
        return any(marker in field_name for marker in self.boolean_markers)

    def is_numeric(self, field_name: str) -> bool:
        if field_name in self.text_fields:
            return False
        return any(marker in field_name for marker in self.numeric_markers)

    def coerce(self, field_name: str, value: Optional[str]) -> Any:
        # Boolean markers take precedence over numeric ones.
        if self.is_boolean(field_name):
            return (value or "").strip().lower() in _TRUE_STRINGS
        if self.is_numeric(field_name):
            return parse_number(value)
        return value


class PathKeyDecoder:
    """Folds flat bracket-path fields into structured records."""

    def __init__(self, coercion: Optional[FieldCoercion] = None) -> None:
        self._coercion = coercion or FieldCoercion()

    @property
    def coercion(self) -> FieldCoercion:
        return self._coercion

    @staticmethod
    def _record_pattern(prefix: str) -> re.Pattern[str]:
        return re.compile(
            rf"^{re.escape(prefix)}\[(?P<id>[^\[\]]+)\]\[(?P<field>\w+)\]"
            r"(?:\[(?P<sub>[^\[\]]*)\])?(?P<array>\[\])?$"
        )

    def decode_records(self, fields: Mapping[str, FieldValue], prefix: str) -> List[Dict[str, Any]]:
        """Decode every ``prefix[id][field]...`` key into one record per id.

        Records are emitted in order of the first key seen for each id; records
        left without any field are dropped.
        """
        pattern = self._record_pattern(prefix)
        records: Dict[str, Dict[str, Any]] = {}
        for key, raw in fields.items():
            if not key or not key.startswith(prefix + "["):
                continue
            match = pattern.match(key)
            if not match:
                logger.debug("Ignoring unrecognised form key %s", key)
                continue
            record = records.setdefault(match.group("id"), {})
            self._assign(
                record,
                field_name=match.group("field"),
                sub_key=match.group("sub"),
                array=match.group("array") is not None,
                raw=raw,
            )
        return [record for record in records.values() if record]

    def decode_indexed(self, fields: Mapping[str, FieldValue], prefix: str) -> List[Dict[str, Any]]:
        """Decode ``prefix[0][field]`` keys into records ordered by their numeric index."""
        pattern = self._record_pattern(prefix)
        indexed: Dict[int, Dict[str, Any]] = {}
        for key, raw in fields.items():
            if not key or not key.startswith(prefix + "["):
                continue
            match = pattern.match(key)
            if not match or not match.group("id").isdigit():
                logger.debug("Ignoring unrecognised form key %s", key)
                continue
            record = indexed.setdefault(int(match.group("id")), {})
            self._assign(
                record,
                field_name=match.group("field"),
                sub_key=match.group("sub"),
                array=match.group("array") is not None,
                raw=raw,
            )
        return [indexed[index] for index in sorted(indexed) if indexed[index]]

    def decode_array(self, fields: Mapping[str, FieldValue], name: str) -> List[str]:
        """Collect a top-level array such as ``hotelAmenities[]``.

        The bare ``name`` key is accepted as well. Entries are trimmed and blanks dropped.
        """
        collected: List[str] = []
        for key in (f"{name}[]", name):
            if key not in fields:
                continue
            for value in _values(fields[key]):
                stripped = value.strip()
                if stripped:
                    collected.append(stripped)
        return collected

    def _assign(
        self,
        record: Dict[str, Any],
        *,
        field_name: str,
        sub_key: Optional[str],
        array: bool,
        raw: FieldValue,
    ) -> None:
        values = _values(raw)
        if sub_key is None:
            if len(values) > 1:
                self._set_array(record, field_name, values)
            else:
                self._set_scalar(record, field_name, values[0] if values else None)
            return
        if sub_key == "":
            # prefix[id][field][] (also tolerates a stray trailing [] pair)
            self._set_array(record, field_name, values)
            return
        nested = record.get(field_name)
        if not isinstance(nested, dict):
            nested = {}
            record[field_name] = nested
        if array or len(values) > 1:
            nested[sub_key] = list(values)
        elif values:
            nested[sub_key] = values[0]

    def _set_scalar(self, record: Dict[str, Any], field_name: str, value: Optional[str]) -> None:
        coerced = self._coercion.coerce(field_name, value)
        if coerced is None:
            record.pop(field_name, None)
            return
        record[field_name] = coerced

    def _set_array(self, record: Dict[str, Any], field_name: str, values: Iterable[str]) -> None:
        if self._coercion.is_numeric(field_name) and not self._coercion.is_boolean(field_name):
            numbers = [parse_number(value) for value in values]
            record[field_name] = [number for number in numbers if number is not None]
            return
        record[field_name] = list(values)
