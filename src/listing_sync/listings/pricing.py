"""Headline pricing for hotel search results."""
from __future__ import annotations

from typing import Iterable, List, Optional

from listing_sync.utils.numbers import Number

from .models import DURATION_HOURLY, PackageDetail, Pricing

DEFAULT_PRICE = 999
DEFAULT_CHECK_IN_CHARGE = 500


def _minimum(values: List[Number]) -> Optional[Number]:
    return min(values) if values else None


def extract_pricing(
    packages: Iterable[PackageDetail],
    *,
    default_price: Number = DEFAULT_PRICE,
    default_check_in_charge: Number = DEFAULT_CHECK_IN_CHARGE,
) -> Pricing:
    """Derive the advertised hourly rate and check-in charge.

    The lowest hourly charge and the lowest hourly check-in charge win. Day,
    Night and 24-hour packages only contribute their check-in charge, as a
    fallback for both figures. With no priced package at all the sentinel
    defaults are returned and ``has_pricing`` is false.
    """
    hourly_charges: List[Number] = []
    hourly_check_ins: List[Number] = []
    general_charges: List[Number] = []

    for package in packages:
        if package.duration == DURATION_HOURLY:
            if package.hourly_charge is not None:
                hourly_charges.append(package.hourly_charge)
            if package.check_in_charge is not None:
                hourly_check_ins.append(package.check_in_charge)
        elif package.check_in_charge is not None:
            general_charges.append(package.check_in_charge)

    hourly_charge = _minimum(hourly_charges)
    hourly_check_in = _minimum(hourly_check_ins)
    general_charge = _minimum(general_charges)

    price = hourly_charge if hourly_charge is not None else general_charge
    check_in_charge = hourly_check_in if hourly_check_in is not None else general_charge
    return Pricing(
        price=price if price is not None else default_price,
        check_in_charge=check_in_charge if check_in_charge is not None else default_check_in_charge,
        has_pricing=price is not None or check_in_charge is not None,
    )
