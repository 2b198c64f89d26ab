"""
Trip code generation.

Trip codes look like ``YYMMDD-XXXX``: the calendar day followed by a
four-digit daily sequence starting at 0001. The next code is derived from
the codes already known for that day; nothing is reserved, so two callers
working from the same snapshot compute the same code.
"""

import re
from datetime import date
from typing import Iterable, Optional

TRIP_CODE_PATTERN = re.compile(r"^\d{6}-\d{4}$")
SEQUENCE_WIDTH = 4


def date_prefix(day: date) -> str:
    """Return ``YYMMDD`` for the given day."""
    return day.strftime("%y%m%d")


def is_valid_trip_code(trip_code: Optional[str]) -> bool:
    return bool(trip_code) and TRIP_CODE_PATTERN.match(trip_code) is not None


def parse_sequence(trip_code: Optional[str]) -> Optional[int]:
    """
    Extract the daily sequence from a trip code.

    Returns None when the code has no ``-`` segment or the segment is not numeric.
    """
    if not trip_code or "-" not in trip_code:
        return None
    segment = trip_code.split("-")[1]
    if not segment.isdigit():
        return None
    return int(segment)


def next_trip_code(existing_codes: Iterable[Optional[str]], today: date) -> str:
    """
    Compute the next trip code for ``today``.

    Args:
        existing_codes: Trip codes of the known trips (any day, None allowed)
        today: Calendar day the code is generated for

    Returns:
        ``{prefix}-{max(sequence) + 1:04d}``, or ``{prefix}-0001`` when no
        trip code for the day exists yet.
    """
    prefix = date_prefix(today)
    sequences = [
        sequence
        for sequence in (parse_sequence(code) for code in existing_codes if code and code.startswith(prefix))
        if sequence is not None
    ]
    next_sequence = max(sequences) + 1 if sequences else 1
    return f"{prefix}-{str(next_sequence).zfill(SEQUENCE_WIDTH)}"
