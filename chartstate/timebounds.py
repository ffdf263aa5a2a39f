"""Time bound model for chart time ranges.

A time bound is a plain integer: a year, or a day offset from ``EPOCH_DATE``
when the dataset's time axis is date based. The two sentinels below stand for
"earliest available" and "latest available" and sit far outside any real
time value, so ordinary comparisons, ``min``/``max`` and clamping work on
bounds without special cases.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class TimeBoundValue(IntEnum):
    """Sentinel bounds. These values are part of the wire format."""

    UNBOUNDED_LEFT = -999_999_999
    UNBOUNDED_RIGHT = 999_999_999


TimeBound = int
TimeBounds = Tuple[TimeBound, TimeBound]

EPOCH_DATE = date(2020, 1, 21)

EARLIEST = "earliest"
LATEST = "latest"
RANGE_SEPARATOR = ".."

# Nine digits is the widest value that can sit between the sentinels
_YEAR_RE = re.compile(r"^[+-]?\d{1,9}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ParsedTimeRange:
    """Result of parsing a time range expression."""

    start: TimeBound
    end: TimeBound
    irreversible: bool = False

    @property
    def bounds(self) -> TimeBounds:
        return (self.start, self.end)


def is_unbounded(value: TimeBound) -> bool:
    """True if value is one of the sentinel bounds."""
    return value in (TimeBoundValue.UNBOUNDED_LEFT, TimeBoundValue.UNBOUNDED_RIGHT)


def date_to_day(value: date) -> int:
    """Number of days between EPOCH_DATE and value (negative before it)."""
    return (value - EPOCH_DATE).days


def day_to_date(day: int) -> date:
    """Calendar date for a day offset."""
    return EPOCH_DATE + timedelta(days=day)


def format_day(day: int) -> str:
    """Human label for a day offset, e.g. ``Jan 21, 2020``."""
    d = day_to_date(day)
    return f"{d:%b} {d.day}, {d.year}"


def _is_finite(value: int) -> bool:
    return TimeBoundValue.UNBOUNDED_LEFT < value < TimeBoundValue.UNBOUNDED_RIGHT


def is_representable_day(value: TimeBound) -> bool:
    """True if value is a sentinel or a day offset with a calendar date."""
    if is_unbounded(value):
        return True
    try:
        day_to_date(value)
    except OverflowError:
        return False
    return True


def _parse_side(text: str, year_is_day: bool) -> Optional[Tuple[TimeBound, bool]]:
    """Parse one side of a range into (bound, irreversible)."""
    if text == LATEST:
        return TimeBoundValue.UNBOUNDED_RIGHT, False
    if text == EARLIEST:
        return TimeBoundValue.UNBOUNDED_LEFT, False

    if year_is_day and _DATE_RE.match(text):
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            return None
        return date_to_day(parsed), False

    if _YEAR_RE.match(text):
        value = int(text)
        if not _is_finite(value):
            return None
        if year_is_day and not is_representable_day(value):
            return None
        # Day offsets typed as numbers are re-encoded as dates, and an explicit
        # plus sign is never emitted.
        return value, year_is_day or text.startswith("+")

    return None


def parse_time_bound(text: str, year_is_day: bool = False) -> Optional[TimeBound]:
    """
    Parse a single time bound.

    Returns None for an empty or malformed string, which callers treat as
    "leave the current bound unchanged".
    """
    if not text:
        return None
    parsed = _parse_side(text, year_is_day)
    if parsed is None:
        logger.debug(f"Ignoring unparseable time bound: {text!r}")
        return None
    return parsed[0]


def parse_time_range(
    text: str, year_is_day: bool = False
) -> Optional[ParsedTimeRange]:
    """
    Parse a range expression such as ``2000..2005``, ``earliest..latest``,
    ``2020-01-01..2020-02-01`` or a single value.

    Legacy one-sided forms (``2000..``, ``..2005``, ``..``) resolve the empty
    side to its sentinel and are flagged irreversible.
    """
    if not text:
        return None

    if RANGE_SEPARATOR not in text:
        parsed = _parse_side(text, year_is_day)
        if parsed is None:
            logger.debug(f"Ignoring unparseable time range: {text!r}")
            return None
        value, irreversible = parsed
        return ParsedTimeRange(value, value, irreversible)

    parts = text.split(RANGE_SEPARATOR)
    if len(parts) != 2:
        logger.debug(f"Ignoring time range with too many separators: {text!r}")
        return None

    start_text, end_text = parts

    if start_text:
        start = _parse_side(start_text, year_is_day)
    else:
        start = (TimeBoundValue.UNBOUNDED_LEFT, True)

    if end_text:
        end = _parse_side(end_text, year_is_day)
    else:
        end = (TimeBoundValue.UNBOUNDED_RIGHT, True)

    if start is None or end is None:
        logger.debug(f"Ignoring unparseable time range: {text!r}")
        return None

    irreversible = start[1] or end[1]
    return ParsedTimeRange(start[0], end[0], irreversible)


def parse_range(text: str, year_is_day: bool = False) -> Optional[TimeBounds]:
    """Parse a range expression into (start, end), or None to leave it unchanged."""
    parsed = parse_time_range(text, year_is_day)
    return parsed.bounds if parsed else None


def format_time_bound(value: TimeBound, year_is_day: bool = False) -> str:
    """Format a single bound in its canonical form."""
    if value == TimeBoundValue.UNBOUNDED_LEFT:
        return EARLIEST
    if value == TimeBoundValue.UNBOUNDED_RIGHT:
        return LATEST
    if year_is_day:
        return day_to_date(int(value)).isoformat()
    return str(int(value))


def format_range(bounds: TimeBounds, year_is_day: bool = False) -> str:
    """Format (start, end) canonically; equal bounds collapse to one value."""
    start, end = bounds
    if start == end:
        return format_time_bound(start, year_is_day)
    return (
        f"{format_time_bound(start, year_is_day)}"
        f"{RANGE_SEPARATOR}"
        f"{format_time_bound(end, year_is_day)}"
    )


def time_bound_to_json(value: Optional[TimeBound]) -> Union[None, int, str]:
    """Convert a bound to its persisted config form."""
    if value is None:
        return None
    if value == TimeBoundValue.UNBOUNDED_LEFT:
        return EARLIEST
    if value == TimeBoundValue.UNBOUNDED_RIGHT:
        return LATEST
    return int(value)


def time_bound_from_json(value: Any) -> Optional[TimeBound]:
    """
    Convert a persisted config value to a bound.

    Raises:
        ValueError: If the value is neither a number nor a known keyword
    """
    if value is None:
        return None
    if value == EARLIEST:
        return TimeBoundValue.UNBOUNDED_LEFT
    if value == LATEST:
        return TimeBoundValue.UNBOUNDED_RIGHT
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Invalid time bound: {value!r}")
    if not _is_finite(int(value)):
        return (
            TimeBoundValue.UNBOUNDED_LEFT
            if value < 0
            else TimeBoundValue.UNBOUNDED_RIGHT
        )
    return int(value)
