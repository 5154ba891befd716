"""
Data types and constants for the availability engine.

This module contains:
- Value objects passed into and returned from the engine
- Constants for the booking window and slot alignment
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .exceptions import UnknownService


MINUTES_PER_DAY = 1440
LEAD_TIME_MINUTES = 30
SLOT_ROUNDING_MINUTES = 10
CUSTOM_HOURS_TAIL_MINUTES = 60
WINDOW_DAYS = 60

DEFAULT_DAY_START = 9 * 60
DEFAULT_DAY_END = 18 * 60
FALLBACK_DURATION_MINUTES = 60


@dataclass(frozen=True)
class BookingPolicy:
    """Business hours used when a date has no custom override."""
    day_start: int = DEFAULT_DAY_START
    day_end: int = DEFAULT_DAY_END
    fallback_duration: int = FALLBACK_DURATION_MINUTES


@dataclass(frozen=True)
class ServiceCatalog:
    """
    Snapshot of service name -> duration minutes.

    Built fresh for every computation so administrative edits are picked up
    by the next request. ``version`` identifies the snapshot in logs.
    """
    durations: Mapping[str, int] = field(default_factory=dict)
    version: Optional[datetime] = None

    def duration_for(self, name: str) -> int:
        try:
            return self.durations[name]
        except KeyError:
            raise UnknownService(name) from None

    def names(self) -> List[str]:
        return sorted(self.durations)

    def __contains__(self, name) -> bool:
        return name in self.durations


@dataclass(frozen=True)
class OverrideData:
    """A day-level exception to the default hours."""
    day: date
    blocked: bool = False
    times: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReservationData:
    """A confirmed reservation as seen by the engine."""
    day: date
    start: int
    service: str
    duration_label: str = ''


@dataclass(frozen=True)
class DayInterval:
    """Effective open interval [start, end) for one date, in minutes."""
    start: int
    end: int


@dataclass(frozen=True)
class BusyRange:
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


@dataclass(frozen=True)
class Slot:
    start: int
    end: int


@dataclass(frozen=True)
class AvailabilityRequest:
    """Everything one engine invocation reads."""
    today: date
    now_minutes: int
    catalog: ServiceCatalog
    overrides: Mapping[date, OverrideData] = field(default_factory=dict)
    reservations: Tuple[ReservationData, ...] = ()
    policy: BookingPolicy = field(default_factory=BookingPolicy)
    window_days: int = WINDOW_DAYS


@dataclass
class DayAvailability:
    """Bookable slots per service for one date."""
    day: date
    services: Dict[str, List[Slot]] = field(default_factory=dict)
