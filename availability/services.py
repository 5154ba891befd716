"""
Service layer for availability and booking business logic.

Reads the catalog, day overrides and confirmed bookings into immutable
snapshots, hands them to the engine, and implements the administrative
operations that change those sources.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from . import engine
from .models import Booking, DayOverride, Service
from .exceptions import MalformedTime
from .timeutils import parse_time, validate_local_minutes
from .types import (
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    FALLBACK_DURATION_MINUTES,
    WINDOW_DAYS,
    AvailabilityRequest,
    BookingPolicy,
    DayAvailability,
    OverrideData,
    ReservationData,
    ServiceCatalog,
)

logger = logging.getLogger(__name__)


def get_booking_policy() -> BookingPolicy:
    """
    Build the default-hours policy from settings.AVAILABILITY.

    Raises:
        ImproperlyConfigured: If the configured hours are malformed or empty
    """
    config = getattr(settings, 'AVAILABILITY', {})

    day_start = config.get('DEFAULT_DAY_START')
    day_end = config.get('DEFAULT_DAY_END')

    try:
        policy = BookingPolicy(
            day_start=parse_time(day_start) if day_start else DEFAULT_DAY_START,
            day_end=parse_time(day_end) if day_end else DEFAULT_DAY_END,
            fallback_duration=config.get('FALLBACK_DURATION_MINUTES', FALLBACK_DURATION_MINUTES),
        )
    except MalformedTime as exc:
        raise ImproperlyConfigured(f"AVAILABILITY default hours: {exc}") from exc

    if policy.day_start >= policy.day_end:
        raise ImproperlyConfigured("AVAILABILITY DEFAULT_DAY_START must be before DEFAULT_DAY_END")
    return policy


def load_service_catalog() -> ServiceCatalog:
    """Snapshot the live service catalog."""
    rows = list(Service.objects.values_list('name', 'duration_minutes'))
    version = Service.objects.aggregate(version=Max('updated_at'))['version']
    return ServiceCatalog(durations=dict(rows), version=version)


def load_overrides(start_date: date, end_date: date) -> Dict[date, OverrideData]:
    """Snapshot day overrides between two dates (inclusive)."""
    return {
        override.date: OverrideData(
            day=override.date,
            blocked=override.blocked,
            times=tuple(override.times or ())
        )
        for override in DayOverride.objects.in_date_range(start_date, end_date)
    }


def load_confirmed_reservations(
    start_date: date,
    end_date: date
) -> Tuple[ReservationData, ...]:
    """
    Snapshot confirmed bookings between two dates (inclusive).

    Raises:
        MalformedTime: If a stored booking time cannot be parsed
    """
    bookings = Booking.objects.confirmed_in_range(start_date, end_date)
    return tuple(
        ReservationData(
            day=booking.date,
            start=parse_time(booking.time),
            service=booking.service,
            duration_label=booking.duration
        )
        for booking in bookings
    )


def resolve_now(
    local_date: Optional[date] = None,
    local_minutes: Optional[int] = None
) -> Tuple[date, int]:
    """
    Determine the caller's "today" and time of day.

    Values the caller supplies win; missing ones come from the process clock
    in settings.TIME_ZONE.

    Raises:
        InvalidWindowInput: If local_minutes is outside a single day
    """
    if local_minutes is not None:
        validate_local_minutes(local_minutes)

    if (local_date is None) != (local_minutes is None):
        logger.warning(
            "Only one of localDate/localMinutes supplied (localDate=%s, localMinutes=%s); "
            "the other comes from the server clock and may not match the caller's zone",
            local_date, local_minutes
        )

    now = timezone.localtime()
    today = local_date if local_date is not None else now.date()
    minutes = local_minutes if local_minutes is not None else now.hour * 60 + now.minute
    return today, minutes


def get_availability(
    local_date: Optional[date] = None,
    local_minutes: Optional[int] = None
) -> List[DayAvailability]:
    """
    Compute bookable slots for every service over the booking window.

    Args:
        local_date: Caller's current date (defaults to the server clock)
        local_minutes: Caller's current minutes since midnight

    Returns:
        List of DayAvailability ordered by date

    Raises:
        InvalidWindowInput: If local_minutes is out of range
        MalformedTime: If a stored booking or override time is malformed
    """
    today, now_minutes = resolve_now(local_date, local_minutes)
    end_date = today + timedelta(days=WINDOW_DAYS)

    request = AvailabilityRequest(
        today=today,
        now_minutes=now_minutes,
        catalog=load_service_catalog(),
        overrides=load_overrides(today, end_date),
        reservations=load_confirmed_reservations(today, end_date),
        policy=get_booking_policy(),
        window_days=WINDOW_DAYS,
    )

    days = engine.compute_availability(request)

    logger.info(
        "Computed availability for %s at minute %d: %d service(s), catalog version %s, %d open date(s)",
        today, now_minutes, len(request.catalog.durations), request.catalog.version, len(days)
    )
    return days


@transaction.atomic
def create_service(name: str, duration_minutes: int) -> Service:
    """
    Add a service to the catalog.

    Raises:
        ValueError: If duration_minutes is not positive
    """
    _validate_duration(duration_minutes)
    service = Service.objects.create(name=name, duration_minutes=duration_minutes)
    logger.info("Created service %r (%d min)", name, duration_minutes)
    return service


@transaction.atomic
def update_service_duration(service: Service, duration_minutes: int) -> Service:
    """
    Change a service's duration.

    Takes effect for the next availability computation, including for
    bookings made before the change.

    Raises:
        ValueError: If duration_minutes is not positive
    """
    _validate_duration(duration_minutes)

    previous = service.duration_minutes
    service.duration_minutes = duration_minutes
    service.save()

    logger.info("Service %r duration changed %d -> %d min", service.name, previous, duration_minutes)
    return service


@transaction.atomic
def set_day_override(
    day: date,
    blocked: bool = False,
    times: Optional[Sequence[str]] = None,
    note: str = ''
) -> DayOverride:
    """
    Create or replace the override for a date.

    Args:
        day: Date to override
        blocked: Close the date entirely
        times: Ordered 12-hour boundary times for custom hours
        note: Free-text reason

    Raises:
        MalformedTime: If a boundary time is malformed
        ValueError: If the times are not ascending
    """
    minutes = [parse_time(value) for value in (times or [])]
    if minutes != sorted(minutes):
        raise ValueError("Override times must be in ascending order")

    override, _ = DayOverride.objects.update_or_create(
        date=day,
        defaults={'blocked': blocked, 'times': list(times or []), 'note': note}
    )
    logger.info("Override for %s set (blocked=%s, times=%s)", day, blocked, override.times)
    return override


@transaction.atomic
def clear_day_override(day: date) -> bool:
    """Remove the override for a date. Returns True if one existed."""
    deleted, _ = DayOverride.objects.filter(date=day).delete()
    if deleted:
        logger.info("Override for %s cleared", day)
    return bool(deleted)


@transaction.atomic
def create_booking(
    customer_name: str,
    service: str,
    day: date,
    time: str,
    email: str = '',
    phone: str = '',
    reference: Optional[str] = None
) -> Booking:
    """
    Create a pending booking.

    The duration label is captured from the catalog at creation time and
    only used if the service later disappears from the catalog.

    Raises:
        MalformedTime: If time is not a valid 12-hour time
    """
    parse_time(time)

    catalog_entry = Service.objects.named(service).first()
    duration = f"{catalog_entry.duration_minutes} mins" if catalog_entry else ''

    booking = Booking.objects.create(
        reference=reference,
        customer_name=customer_name,
        email=email,
        phone=phone,
        service=service,
        date=day,
        time=time,
        duration=duration,
        status='pending'
    )
    return booking


@transaction.atomic
def confirm_booking(booking: Booking) -> Booking:
    """
    Confirm a pending booking so it occupies time.

    Raises:
        ValueError: If the booking is not pending or overlaps a confirmed booking
    """
    if booking.status != 'pending':
        raise ValueError(f"Cannot confirm a {booking.status} booking")

    _check_no_conflict(booking)

    booking.status = 'confirmed'
    booking.save()
    logger.info("Booking %s confirmed (%s %s %s)", booking.pk, booking.service, booking.date, booking.time)
    return booking


@transaction.atomic
def cancel_booking(booking: Booking) -> Booking:
    """
    Cancel a booking, releasing its time.

    Raises:
        ValueError: If the booking is already cancelled or completed
    """
    if booking.status == 'cancelled':
        raise ValueError("Booking is already cancelled")

    if booking.status == 'completed':
        raise ValueError("Cannot cancel a completed booking")

    booking.status = 'cancelled'
    booking.save()
    logger.info("Booking %s cancelled", booking.pk)
    return booking


@transaction.atomic
def complete_booking(booking: Booking) -> Booking:
    """
    Mark a confirmed booking as completed.

    Raises:
        ValueError: If the booking is not confirmed
    """
    if booking.status == 'completed':
        raise ValueError("Booking is already completed")

    if booking.status != 'confirmed':
        raise ValueError(f"Cannot complete a {booking.status} booking")

    booking.status = 'completed'
    booking.save()
    return booking


def _check_no_conflict(booking: Booking) -> None:
    """Reject a booking whose range overlaps a confirmed booking on its date."""
    catalog = load_service_catalog()
    fallback = get_booking_policy().fallback_duration

    own_range = engine.build_busy_ranges([_as_reservation(booking)], catalog, fallback)[0]

    others = (
        Booking.objects.confirmed()
        .on_date(booking.date)
        .exclude(pk=booking.pk)
        .select_for_update()
    )
    busy = engine.build_busy_ranges([_as_reservation(other) for other in others], catalog, fallback)

    if any(existing.overlaps(own_range.start, own_range.end) for existing in busy):
        raise ValueError(
            f"{booking.service} at {booking.time} on {booking.date} overlaps a confirmed booking"
        )


def _as_reservation(booking: Booking) -> ReservationData:
    return ReservationData(
        day=booking.date,
        start=parse_time(booking.time),
        service=booking.service,
        duration_label=booking.duration
    )


def _validate_duration(duration_minutes: int) -> None:
    """Validate duration is positive."""
    if duration_minutes <= 0:
        raise ValueError("Duration must be positive")
