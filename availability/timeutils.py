"""
Time-of-day helpers.

Times are carried around as integer minutes since midnight. The 12-hour
clock strings ("9:00 AM") only exist at the edges: stored booking times,
override boundaries, and the API response.
"""

import re
from datetime import date
from typing import Optional

from .exceptions import InvalidWindowInput, MalformedTime
from .types import MINUTES_PER_DAY, SLOT_ROUNDING_MINUTES


_TIME_RE = re.compile(r'^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$')

_DURATION_RE = re.compile(
    r'^\s*'
    r'(?:(?P<hours>\d+(?:\.\d+)?)\s*(?:h|hr|hrs|hour|hours)\.?\s*)?'
    r'(?:(?P<minutes>\d+)\s*(?:m|min|mins|minute|minutes)?\.?)?'
    r'\s*$',
    re.IGNORECASE,
)


def parse_time(value: str) -> int:
    """
    Parse a 12-hour clock string into minutes since midnight.

    Args:
        value: e.g. "9:00 AM", "12:30 pm"

    Returns:
        Minutes since midnight in [0, 1440)

    Raises:
        MalformedTime: If the string is not a valid 12-hour time
    """
    if not isinstance(value, str):
        raise MalformedTime(value)

    match = _TIME_RE.match(value)
    if not match:
        raise MalformedTime(value)

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or minute > 59:
        raise MalformedTime(value)

    hour = hour % 12
    if meridiem == 'PM':
        hour += 12
    return hour * 60 + minute


def format_time(minutes: int) -> str:
    """Render minutes since midnight as "9:00 AM". 1440 renders as midnight."""
    minutes = minutes % MINUTES_PER_DAY
    hour, minute = divmod(minutes, 60)
    meridiem = 'AM' if hour < 12 else 'PM'
    hour = hour % 12 or 12
    return f'{hour}:{minute:02d} {meridiem}'


def round_up(minutes: int, step: int = SLOT_ROUNDING_MINUTES) -> int:
    """Round up to the next multiple of ``step`` (exact multiples unchanged)."""
    return -(-minutes // step) * step


def parse_duration_label(label: Optional[str], default: int) -> int:
    """
    Parse a free-form stored duration such as "90 mins" or "1 hr 30 min".

    Returns ``default`` when the label is empty, unparseable or zero.
    """
    if not label:
        return default

    match = _DURATION_RE.match(str(label))
    if not match or not (match.group('hours') or match.group('minutes')):
        return default

    total = 0.0
    if match.group('hours'):
        total += float(match.group('hours')) * 60
    if match.group('minutes'):
        total += int(match.group('minutes'))

    total = int(round(total))
    return total if total > 0 else default


def parse_local_date(value: str) -> date:
    """Parse an ISO "YYYY-MM-DD" date supplied by the caller."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidWindowInput(f'localDate must be YYYY-MM-DD, got {value!r}') from None


def validate_local_minutes(value: int) -> int:
    """Ensure the caller's time of day lies within one day."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidWindowInput(f'localMinutes must be an integer, got {value!r}')
    if not 0 <= value < MINUTES_PER_DAY:
        raise InvalidWindowInput(f'localMinutes must be between 0 and 1439, got {value}')
    return value
