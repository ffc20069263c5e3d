"""
Seat list ordering.

Seats sort by floor, then by seat number with digits compared numerically,
so "S2" comes before "S10".
"""

import re

_DIGITS = re.compile(r"\d+")
_NON_DIGITS = re.compile(r"[^0-9]")


def seat_sort_key(seat):
    number = seat.seat_number or ""
    digits = _NON_DIGITS.sub("", number)
    prefix = _DIGITS.sub("", number)
    return (
        getattr(seat, "library_name", None) or "",
        seat.floor or "",
        prefix,
        int(digits) if digits else -1,
        number,
    )
