"""
Availability engine.

Pure functions that turn a snapshot of the catalog, day overrides and
confirmed reservations into bookable slots per service per date:

- resolve_day_interval: effective open interval for a date
- build_busy_ranges: confirmed reservations -> occupied minute ranges
- generate_service_slots: candidate starts for one service, filtered
- compute_availability: all of the above over the booking window

Nothing here touches the database or the clock; callers pass "today" and
"now" explicitly.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .exceptions import UnknownService
from .timeutils import parse_duration_label, parse_time, round_up
from .types import (
    CUSTOM_HOURS_TAIL_MINUTES,
    LEAD_TIME_MINUTES,
    MINUTES_PER_DAY,
    AvailabilityRequest,
    BookingPolicy,
    BusyRange,
    DayAvailability,
    DayInterval,
    OverrideData,
    ReservationData,
    ServiceCatalog,
    Slot,
)

logger = logging.getLogger(__name__)


def resolve_day_interval(
    day: date,
    today: date,
    now_minutes: int,
    override: Optional[OverrideData] = None,
    policy: Optional[BookingPolicy] = None
) -> Optional[DayInterval]:
    """
    Resolve the effective open interval for a date.

    Args:
        day: Date being resolved
        today: Caller's current local date
        now_minutes: Caller's current time of day (only used when day == today)
        override: DayOverride snapshot for this date, if any
        policy: Default business hours

    Returns:
        DayInterval, or None if nothing can be booked on this date

    Raises:
        MalformedTime: If an override boundary is not a valid time
    """
    policy = policy or BookingPolicy()

    if day < today:
        return None

    if override is not None and override.blocked:
        return None

    start, end = _nominal_interval(override, policy)

    if day == today:
        start = round_up(max(start, now_minutes + LEAD_TIME_MINUTES))

    if start >= end:
        return None

    return DayInterval(start=start, end=end)


def _nominal_interval(override: Optional[OverrideData], policy: BookingPolicy):
    """Custom hours from the override, else the policy defaults."""
    if override is not None and override.times:
        boundaries = [parse_time(value) for value in override.times]
        start = boundaries[0]
        end = boundaries[-1] + CUSTOM_HOURS_TAIL_MINUTES
    else:
        start, end = policy.day_start, policy.day_end
    return start, min(end, MINUTES_PER_DAY)


def build_busy_ranges(
    reservations: Iterable[ReservationData],
    catalog: ServiceCatalog,
    fallback_duration: int = 60
) -> List[BusyRange]:
    """
    Convert confirmed reservations for one date into busy ranges.

    The live catalog duration wins whenever the service is known; otherwise
    the duration stored with the reservation is parsed.
    """
    ranges = []
    for reservation in reservations:
        duration = _reservation_duration(reservation, catalog, fallback_duration)
        ranges.append(BusyRange(reservation.start, reservation.start + duration))
    return ranges


def _reservation_duration(
    reservation: ReservationData,
    catalog: ServiceCatalog,
    fallback_duration: int
) -> int:
    try:
        return catalog.duration_for(reservation.service)
    except UnknownService:
        duration = parse_duration_label(reservation.duration_label, fallback_duration)
        logger.debug(
            "Service %r not in catalog, using stored duration %d min",
            reservation.service, duration
        )
        return duration


def generate_service_slots(
    interval: DayInterval,
    busy: Sequence[BusyRange],
    duration: int
) -> List[Slot]:
    """
    Enumerate bookable slots for one service on one date.

    Candidates come from a grid anchored at the interval start and from
    every busy range end (rounded up to 10 minutes), each stepping by the
    service duration. A candidate survives if it fits before the interval
    end and its range overlaps no busy range, whatever service booked it.
    """
    if duration <= 0:
        raise ValueError("Duration must be positive")

    start, end = interval.start, interval.end

    candidates = set(_step(start, end, duration))
    for busy_range in busy:
        anchor = round_up(busy_range.end)
        if start <= anchor < end:
            candidates.update(_step(anchor, end, duration))

    slots = []
    for candidate in sorted(candidates):
        candidate_end = candidate + duration
        if candidate < start or candidate_end > end:
            continue
        if any(b.overlaps(candidate, candidate_end) for b in busy):
            continue
        slots.append(Slot(candidate, candidate_end))
    return slots


def _step(first: int, end: int, duration: int):
    current = first
    while current + duration <= end:
        yield current
        current += duration


def compute_availability(request: AvailabilityRequest) -> List[DayAvailability]:
    """
    Compute bookable slots for every service over the booking window.

    Args:
        request: AvailabilityRequest snapshot

    Returns:
        List of DayAvailability ordered by date; dates without any slot are
        omitted, as are services without slots on a date

    Raises:
        MalformedTime: If an override boundary is malformed
    """
    reservations_by_day = _group_by_day(request.reservations)
    results = []

    for offset in range(request.window_days + 1):
        day = request.today + timedelta(days=offset)
        interval = resolve_day_interval(
            day,
            request.today,
            request.now_minutes,
            request.overrides.get(day),
            request.policy
        )
        if interval is None:
            continue

        busy = build_busy_ranges(
            reservations_by_day.get(day, ()),
            request.catalog,
            request.policy.fallback_duration
        )

        services = {}
        for name in request.catalog.names():
            slots = generate_service_slots(interval, busy, request.catalog.duration_for(name))
            if slots:
                services[name] = slots

        if services:
            results.append(DayAvailability(day=day, services=services))

    return results


def _group_by_day(
    reservations: Iterable[ReservationData]
) -> Dict[date, List[ReservationData]]:
    grouped: Dict[date, List[ReservationData]] = {}
    for reservation in reservations:
        grouped.setdefault(reservation.day, []).append(reservation)
    return grouped
