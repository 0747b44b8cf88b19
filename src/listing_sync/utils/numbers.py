"""Numeric coercion shared by form decoding and document loading."""
from __future__ import annotations

import math
from typing import Any, Optional, Union

Number = Union[int, float]


def parse_number(value: Any) -> Optional[Number]:
    """Parse a charge/rate value; ``None`` marks it as unset rather than zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number
