"""
Tests for the availability engine and the booking API around it.

Tests cover:
- Time helpers (12-hour parsing/formatting, rounding, duration labels)
- Calendar normalizer, busy-range builder and slot generator
- Whole-window computation (scenarios, cross-service blocking, monotonicity)
- Service layer (snapshots, catalog edits, overrides, booking lifecycle)
- API endpoints and the show_availability management command
"""

from datetime import date, timedelta
from io import StringIO

from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.forms import modelform_factory
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from . import services
from .checks import check_availability_settings
from .engine import (
    build_busy_ranges,
    compute_availability,
    generate_service_slots,
    resolve_day_interval,
)
from .exceptions import InvalidWindowInput, MalformedTime, UnknownService
from .models import Booking, DayOverride, Service
from .timeutils import (
    format_time,
    parse_duration_label,
    parse_local_date,
    parse_time,
    round_up,
    validate_local_minutes,
)
from .types import (
    AvailabilityRequest,
    BusyRange,
    DayInterval,
    OverrideData,
    ReservationData,
    ServiceCatalog,
)


TODAY = date(2026, 3, 2)
TOMORROW = TODAY + timedelta(days=1)

CATALOG = ServiceCatalog(durations={
    'Blow Dry': 30,
    'Hair Grooming': 120,
    'Retouching': 150,
    'Wig Installation': 90,
})


def _starts(slots):
    return [slot.start for slot in slots]


def _request(**kwargs):
    defaults = {'today': TODAY, 'now_minutes': 0, 'catalog': CATALOG}
    defaults.update(kwargs)
    return AvailabilityRequest(**defaults)


def _day(days, day):
    return next((entry for entry in days if entry.day == day), None)


class TimeHelperTests(SimpleTestCase):
    """Test 12-hour clock parsing and formatting."""

    def test_parse_time(self):
        self.assertEqual(parse_time('9:00 AM'), 540)
        self.assertEqual(parse_time('12:00 PM'), 720)
        self.assertEqual(parse_time('12:00 AM'), 0)
        self.assertEqual(parse_time('11:59 pm'), 1439)
        self.assertEqual(parse_time(' 5:30 PM '), 1050)
        self.assertEqual(parse_time('09:15 AM'), 555)

    def test_parse_time_rejects_malformed_values(self):
        for value in ['13:00 PM', '9:60 AM', '9 AM', '09:00', '0:30 AM', '', 'noon', None]:
            with self.subTest(value=value):
                with self.assertRaises(MalformedTime):
                    parse_time(value)

    def test_malformed_time_is_a_value_error(self):
        with self.assertRaises(ValueError):
            parse_time('25:00')

    def test_format_time(self):
        self.assertEqual(format_time(540), '9:00 AM')
        self.assertEqual(format_time(0), '12:00 AM')
        self.assertEqual(format_time(720), '12:00 PM')
        self.assertEqual(format_time(910), '3:10 PM')
        self.assertEqual(format_time(1080), '6:00 PM')
        self.assertEqual(format_time(1440), '12:00 AM')

    def test_round_up(self):
        self.assertEqual(round_up(907), 910)
        self.assertEqual(round_up(901), 910)
        self.assertEqual(round_up(910), 910)
        self.assertEqual(round_up(0), 0)

    def test_parse_duration_label(self):
        cases = {
            '90 mins': 90,
            '45': 45,
            '2 hours': 120,
            '2 hrs': 120,
            '1 hr 30 min': 90,
            '1h30m': 90,
            '1.5 hours': 90,
            '30 Minutes': 30,
        }
        for label, expected in cases.items():
            with self.subTest(label=label):
                self.assertEqual(parse_duration_label(label, 60), expected)

    def test_parse_duration_label_falls_back(self):
        for label in ['', None, 'about an hour', '0 min']:
            with self.subTest(label=label):
                self.assertEqual(parse_duration_label(label, 60), 60)

    def test_local_date_and_minutes_validation(self):
        self.assertEqual(parse_local_date('2026-03-02'), TODAY)
        self.assertEqual(validate_local_minutes(0), 0)
        self.assertEqual(validate_local_minutes(1439), 1439)

        for bad in ['02/03/2026', '', None]:
            with self.assertRaises(InvalidWindowInput):
                parse_local_date(bad)
        for bad in [-1, 1440, True, '600']:
            with self.assertRaises(InvalidWindowInput):
                validate_local_minutes(bad)


class CalendarNormalizerTests(SimpleTestCase):
    """Test resolve_day_interval."""

    def test_default_hours_for_future_date(self):
        self.assertEqual(resolve_day_interval(TOMORROW, TODAY, 900), DayInterval(540, 1080))

    def test_past_date_is_skipped(self):
        yesterday = TODAY - timedelta(days=1)
        override = OverrideData(day=yesterday, times=('10:00 AM',))
        self.assertIsNone(resolve_day_interval(yesterday, TODAY, 0, override))

    def test_blocked_date_is_skipped(self):
        override = OverrideData(day=TOMORROW, blocked=True, times=('10:00 AM', '2:00 PM'))
        self.assertIsNone(resolve_day_interval(TOMORROW, TODAY, 0, override))

    def test_custom_hours_end_one_hour_after_last_boundary(self):
        override = OverrideData(day=TOMORROW, times=('10:00 AM', '11:00 AM', '2:00 PM'))
        self.assertEqual(resolve_day_interval(TOMORROW, TODAY, 0, override), DayInterval(600, 900))

    def test_empty_custom_hours_use_defaults(self):
        override = OverrideData(day=TOMORROW, times=())
        self.assertEqual(resolve_day_interval(TOMORROW, TODAY, 0, override), DayInterval(540, 1080))

    def test_custom_hours_are_clamped_to_midnight(self):
        override = OverrideData(day=TOMORROW, times=('8:00 PM', '11:30 PM'))
        self.assertEqual(resolve_day_interval(TOMORROW, TODAY, 0, override), DayInterval(1200, 1440))

    def test_today_applies_lead_time_and_rounding(self):
        # 14:37 + 30 min lead time = 15:07, rounded up to 15:10
        self.assertEqual(resolve_day_interval(TODAY, TODAY, 877), DayInterval(910, 1080))

    def test_today_before_opening_keeps_opening_time(self):
        self.assertEqual(resolve_day_interval(TODAY, TODAY, 300), DayInterval(540, 1080))

    def test_today_too_late_is_skipped(self):
        self.assertIsNone(resolve_day_interval(TODAY, TODAY, 1050))
        self.assertIsNone(resolve_day_interval(TODAY, TODAY, 1045))

    def test_malformed_override_time_fails_fast(self):
        override = OverrideData(day=TOMORROW, times=('10:00', '2:00 PM'))
        with self.assertRaises(MalformedTime):
            resolve_day_interval(TOMORROW, TODAY, 0, override)


class BusyRangeBuilderTests(SimpleTestCase):
    """Test build_busy_ranges."""

    def test_duration_comes_from_catalog(self):
        reservations = [ReservationData(day=TOMORROW, start=600, service='Retouching')]
        self.assertEqual(build_busy_ranges(reservations, CATALOG), [BusyRange(600, 750)])

    def test_catalog_wins_over_stored_label(self):
        reservations = [
            ReservationData(day=TOMORROW, start=600, service='Retouching', duration_label='30 mins')
        ]
        self.assertEqual(build_busy_ranges(reservations, CATALOG), [BusyRange(600, 750)])

    def test_unknown_service_uses_stored_label(self):
        reservations = [
            ReservationData(day=TOMORROW, start=600, service='Bridal Package', duration_label='45 mins'),
            ReservationData(day=TOMORROW, start=800, service='Old Service', duration_label='???'),
            ReservationData(day=TOMORROW, start=900, service='Old Service'),
        ]
        self.assertEqual(
            build_busy_ranges(reservations, CATALOG),
            [BusyRange(600, 645), BusyRange(800, 860), BusyRange(900, 960)]
        )

    def test_catalog_raises_unknown_service(self):
        with self.assertRaises(UnknownService):
            CATALOG.duration_for('Bridal Package')
        with self.assertRaises(KeyError):
            CATALOG.duration_for('Bridal Package')


class SlotGeneratorTests(SimpleTestCase):
    """Test generate_service_slots."""

    day = DayInterval(540, 1080)

    def assertSlotsValid(self, slots, interval, busy, duration):
        for slot in slots:
            self.assertEqual(slot.end - slot.start, duration)
            self.assertGreaterEqual(slot.start, interval.start)
            self.assertLessEqual(slot.end, interval.end)
            for busy_range in busy:
                self.assertFalse(busy_range.overlaps(slot.start, slot.end))

    def test_grid_without_bookings(self):
        slots = generate_service_slots(self.day, [], 90)
        self.assertEqual(_starts(slots), [540, 630, 720, 810, 900, 990])
        self.assertEqual(slots[-1].end, 1080)

    def test_slot_opens_at_booking_end(self):
        busy = [BusyRange(540, 690)]
        slots = generate_service_slots(self.day, busy, 120)

        self.assertEqual(_starts(slots), [690, 780, 810, 900, 930])
        self.assertSlotsValid(slots, self.day, busy, 120)

    def test_booking_end_is_rounded_up_to_ten_minutes(self):
        busy = [BusyRange(540, 605)]
        starts = _starts(generate_service_slots(self.day, busy, 60))

        self.assertIn(610, starts)
        self.assertNotIn(600, starts)
        self.assertNotIn(605, starts)

    def test_reservation_ending_at_close_does_not_block_later_slot(self):
        interval = DayInterval(540, 1200)
        busy = [BusyRange(1020, 1080)]
        starts = _starts(generate_service_slots(interval, busy, 60))

        self.assertIn(1080, starts)
        self.assertNotIn(1020, starts)

    def test_reservation_at_last_grid_slot_blocks_it(self):
        busy = [BusyRange(1050, 1080)]
        slots = generate_service_slots(self.day, busy, 30)

        self.assertNotIn(1050, _starts(slots))
        self.assertEqual(slots[-1].start, 1020)

    def test_anchor_outside_interval_is_ignored(self):
        busy = [BusyRange(400, 455)]
        self.assertEqual(
            _starts(generate_service_slots(self.day, busy, 90)),
            [540, 630, 720, 810, 900, 990]
        )

    def test_multiple_bookings(self):
        busy = [BusyRange(600, 690), BusyRange(840, 960)]
        slots = generate_service_slots(self.day, busy, 60)

        self.assertSlotsValid(slots, self.day, busy, 60)
        self.assertEqual(_starts(slots), [540, 690, 720, 750, 780, 960, 990, 1020])

    def test_duration_must_be_positive(self):
        with self.assertRaises(ValueError):
            generate_service_slots(self.day, [], 0)


class ComputeAvailabilityTests(SimpleTestCase):
    """Test compute_availability over the whole window."""

    def test_window_covers_today_and_sixty_days(self):
        days = compute_availability(_request())

        self.assertEqual(len(days), 61)
        self.assertEqual(days[0].day, TODAY)
        self.assertEqual(days[-1].day, TODAY + timedelta(days=60))
        self.assertEqual([d.day for d in days], sorted(d.day for d in days))

    def test_empty_catalog_has_no_availability(self):
        self.assertEqual(compute_availability(_request(catalog=ServiceCatalog())), [])

    def test_scenario_wig_installation_tomorrow(self):
        catalog = ServiceCatalog(durations={'Wig Installation': 90})
        tomorrow = _day(compute_availability(_request(catalog=catalog)), TOMORROW)

        slots = tomorrow.services['Wig Installation']
        self.assertEqual(
            [format_time(slot.start) for slot in slots],
            ['9:00 AM', '10:30 AM', '12:00 PM', '1:30 PM', '3:00 PM', '4:30 PM']
        )

    def test_booking_blocks_other_services(self):
        reservations = (ReservationData(day=TOMORROW, start=540, service='Retouching'),)
        tomorrow = _day(compute_availability(_request(reservations=reservations)), TOMORROW)

        grooming = _starts(tomorrow.services['Hair Grooming'])
        self.assertNotIn(540, grooming)
        self.assertIn(690, grooming)

        for name, slots in tomorrow.services.items():
            for slot in slots:
                with self.subTest(service=name, start=slot.start):
                    self.assertFalse(BusyRange(540, 690).overlaps(slot.start, slot.end))

    def test_bookings_only_affect_their_own_date(self):
        reservations = (ReservationData(day=TOMORROW, start=540, service='Retouching'),)
        days = compute_availability(_request(reservations=reservations))

        day_after = _day(days, TOMORROW + timedelta(days=1))
        self.assertEqual(_starts(day_after.services['Hair Grooming']), [540, 660, 780, 900])

    def test_today_respects_lead_time(self):
        today = _day(compute_availability(_request(now_minutes=877)), TODAY)

        for name, slots in today.services.items():
            with self.subTest(service=name):
                self.assertEqual(slots[0].start, 910)
                self.assertTrue(all(slot.start >= 910 for slot in slots))

    def test_blocked_date_is_absent(self):
        overrides = {TOMORROW: OverrideData(day=TOMORROW, blocked=True)}
        reservations = (ReservationData(day=TOMORROW, start=540, service='Blow Dry'),)
        days = compute_availability(_request(overrides=overrides, reservations=reservations))

        self.assertIsNone(_day(days, TOMORROW))
        self.assertEqual(len(days), 60)

    def test_fully_booked_date_is_absent(self):
        reservations = (
            ReservationData(day=TOMORROW, start=540, service='Staff Training', duration_label='9 hours'),
        )
        days = compute_availability(_request(reservations=reservations))
        self.assertIsNone(_day(days, TOMORROW))

    def test_service_without_room_is_dropped_from_date(self):
        overrides = {TOMORROW: OverrideData(day=TOMORROW, times=('10:00 AM',))}
        tomorrow = _day(compute_availability(_request(overrides=overrides)), TOMORROW)

        self.assertEqual(sorted(tomorrow.services), ['Blow Dry'])
        self.assertEqual(_starts(tomorrow.services['Blow Dry']), [600, 630])

    def test_identical_inputs_give_identical_output(self):
        request = _request(
            now_minutes=700,
            reservations=(
                ReservationData(day=TODAY, start=900, service='Wig Installation'),
                ReservationData(day=TOMORROW, start=600, service='Hair Grooming'),
            ),
            overrides={TODAY + timedelta(days=3): OverrideData(day=TODAY + timedelta(days=3), blocked=True)},
        )
        self.assertEqual(compute_availability(request), compute_availability(request))

    def test_adding_a_booking_only_removes_slots_it_overlaps(self):
        base = (ReservationData(day=TOMORROW, start=540, service='Retouching'),)
        added = ReservationData(day=TOMORROW, start=840, service='Hair Grooming')
        added_range = BusyRange(840, 960)

        before = _day(compute_availability(_request(reservations=base)), TOMORROW)
        after = _day(compute_availability(_request(reservations=base + (added,))), TOMORROW)

        for name, duration in CATALOG.durations.items():
            with self.subTest(service=name):
                old = set(_starts(before.services.get(name, [])))
                new = set(_starts(after.services.get(name, [])))

                for start in old - new:
                    self.assertTrue(added_range.overlaps(start, start + duration))
                for start in new - old:
                    # Only slots anchored on the new booking's end can appear.
                    self.assertGreaterEqual(start, round_up(added_range.end))
                    self.assertEqual((start - round_up(added_range.end)) % duration, 0)
                for start in new:
                    self.assertFalse(added_range.overlaps(start, start + duration))

    def test_removing_a_booking_only_frees_slots_it_overlapped(self):
        removed = ReservationData(day=TOMORROW, start=700, service='Wig Installation')
        removed_range = BusyRange(700, 790)

        before = _day(compute_availability(_request(reservations=(removed,))), TOMORROW)
        after = _day(compute_availability(_request()), TOMORROW)

        for name, duration in CATALOG.durations.items():
            with self.subTest(service=name):
                old = set(_starts(before.services.get(name, [])))
                new = set(_starts(after.services.get(name, [])))

                for start in new - old:
                    self.assertTrue(removed_range.overlaps(start, start + duration))
                for start in old - new:
                    self.assertGreaterEqual(start, round_up(removed_range.end))


class DayOverrideModelTests(TestCase):
    """Test DayOverride validation."""

    def test_rejects_malformed_times(self):
        with self.assertRaises(ValidationError):
            DayOverride.objects.create(date=TOMORROW, times=['10:00', '2:00 PM'])

    def test_rejects_descending_times(self):
        with self.assertRaises(ValidationError):
            DayOverride.objects.create(date=TOMORROW, times=['2:00 PM', '10:00 AM'])

    def test_str(self):
        override = DayOverride.objects.create(date=TOMORROW, blocked=True)
        self.assertEqual(str(override), '2026-03-03 [blocked]')

    def test_form_accepts_empty_times(self):
        """An empty times input in the admin form means default hours."""
        form_class = modelform_factory(DayOverride, fields=['date', 'blocked', 'times', 'note'])
        form = form_class(data={'date': '2026-03-03', 'blocked': 'on', 'times': '', 'note': ''})

        self.assertTrue(form.is_valid(), form.errors)
        override = form.save()
        override.refresh_from_db()
        self.assertEqual(override.times, [])
        self.assertTrue(override.blocked)


class BookingModelTests(TestCase):
    """Test Booking model and manager."""

    def setUp(self):
        for status_value in ['pending', 'confirmed', 'cancelled', 'completed']:
            Booking.objects.create(
                customer_name=f'{status_value} customer',
                service='Retouching',
                date=TOMORROW,
                time='9:00 AM',
                status=status_value
            )

    def test_confirmed_filter(self):
        confirmed = Booking.objects.confirmed()
        self.assertEqual(confirmed.count(), 1)
        self.assertEqual(confirmed.first().customer_name, 'confirmed customer')

    def test_confirmed_in_range(self):
        self.assertEqual(Booking.objects.confirmed_in_range(TODAY, TOMORROW).count(), 1)
        self.assertEqual(Booking.objects.confirmed_in_range(TODAY, TODAY).count(), 0)

    def test_on_date(self):
        self.assertEqual(Booking.objects.on_date(TOMORROW).count(), 4)
        self.assertEqual(Booking.objects.on_date(TODAY).count(), 0)
        self.assertEqual(Booking.objects.confirmed().on_date(TOMORROW).count(), 1)

    def test_start_minutes(self):
        self.assertEqual(Booking.objects.confirmed().first().start_minutes, 540)

    def test_rejects_malformed_time(self):
        with self.assertRaises(ValidationError):
            Booking.objects.create(
                customer_name='Ada',
                service='Retouching',
                date=TOMORROW,
                time='9am'
            )


class AvailabilityServiceTests(TestCase):
    """Test the service layer against the database."""

    def setUp(self):
        self.retouching = Service.objects.create(name='Retouching', duration_minutes=150)
        Service.objects.create(name='Hair Grooming', duration_minutes=120)

    def _confirmed_booking(self, service='Retouching', time='9:00 AM', day=TOMORROW):
        booking = services.create_booking(
            customer_name='Ada',
            service=service,
            day=day,
            time=time
        )
        return services.confirm_booking(booking)

    def _grooming_starts(self, day=TOMORROW):
        days = services.get_availability(local_date=TODAY, local_minutes=0)
        return _starts(_day(days, day).services['Hair Grooming'])

    def test_catalog_snapshot(self):
        catalog = services.load_service_catalog()

        self.assertEqual(dict(catalog.durations), {'Retouching': 150, 'Hair Grooming': 120})
        self.assertEqual(catalog.version, Service.objects.order_by('-updated_at').first().updated_at)

    def test_empty_catalog_has_no_version(self):
        Service.objects.all().delete()
        self.assertIsNone(services.load_service_catalog().version)

    def test_confirmed_booking_blocks_every_service(self):
        self._confirmed_booking()

        starts = self._grooming_starts()
        self.assertNotIn(540, starts)
        self.assertIn(690, starts)

    def test_pending_and_cancelled_bookings_do_not_block(self):
        services.create_booking(customer_name='Ada', service='Retouching', day=TOMORROW, time='9:00 AM')
        cancelled = self._confirmed_booking(time='11:00 AM')
        services.cancel_booking(cancelled)

        self.assertEqual(self._grooming_starts(), [540, 660, 780, 900])

    def test_duration_change_applies_to_existing_bookings(self):
        self._confirmed_booking()
        self.assertNotIn(600, self._grooming_starts())

        services.update_service_duration(self.retouching, 60)

        self.assertIn(600, self._grooming_starts())

    def test_removed_service_falls_back_to_stored_duration(self):
        booking = self._confirmed_booking()
        self.assertEqual(booking.duration, '150 mins')

        self.retouching.delete()

        days = services.get_availability(local_date=TODAY, local_minutes=0)
        tomorrow = _day(days, TOMORROW)
        self.assertNotIn('Retouching', tomorrow.services)
        self.assertNotIn(540, _starts(tomorrow.services['Hair Grooming']))
        self.assertIn(690, _starts(tomorrow.services['Hair Grooming']))

    def test_malformed_stored_time_fails_fast(self):
        booking = self._confirmed_booking()
        Booking.objects.filter(pk=booking.pk).update(time='25:00 PM')

        with self.assertRaises(MalformedTime):
            services.get_availability(local_date=TODAY, local_minutes=0)

    def test_blocked_override(self):
        services.set_day_override(TOMORROW, blocked=True, note='Public holiday')

        days = services.get_availability(local_date=TODAY, local_minutes=0)
        self.assertIsNone(_day(days, TOMORROW))

        self.assertTrue(services.clear_day_override(TOMORROW))
        self.assertFalse(services.clear_day_override(TOMORROW))
        self.assertIsNotNone(_day(services.get_availability(local_date=TODAY, local_minutes=0), TOMORROW))

    def test_custom_hours_override(self):
        services.set_day_override(TOMORROW, times=['12:00 PM', '1:00 PM', '2:00 PM'])
        self.assertEqual(self._grooming_starts(), [720])

        override = services.set_day_override(TOMORROW, times=['10:00 AM'])
        self.assertEqual(override.times, ['10:00 AM'])
        self.assertEqual(DayOverride.objects.count(), 1)

    def test_override_times_must_ascend(self):
        with self.assertRaises(ValueError):
            services.set_day_override(TOMORROW, times=['2:00 PM', '10:00 AM'])

    def test_override_times_must_parse(self):
        with self.assertRaises(MalformedTime):
            services.set_day_override(TOMORROW, times=['10 AM'])

    @override_settings(AVAILABILITY={'DEFAULT_DAY_START': '10:00 AM', 'DEFAULT_DAY_END': '4:00 PM'})
    def test_default_hours_come_from_settings(self):
        policy = services.get_booking_policy()

        self.assertEqual((policy.day_start, policy.day_end), (600, 960))
        self.assertEqual(self._grooming_starts(), [600, 720, 840])

    def test_resolve_now_uses_caller_values(self):
        self.assertEqual(services.resolve_now(TODAY, 877), (TODAY, 877))

    def test_resolve_now_warns_on_partial_input(self):
        with self.assertLogs('availability.services', level='WARNING') as logs:
            today, minutes = services.resolve_now(local_minutes=600)

        self.assertEqual(minutes, 600)
        self.assertIsInstance(today, date)
        self.assertIn('Only one of localDate/localMinutes', logs.output[0])

    def test_resolve_now_rejects_out_of_range_minutes(self):
        with self.assertRaises(InvalidWindowInput):
            services.resolve_now(TODAY, 1440)

    def test_computation_is_logged(self):
        with self.assertLogs('availability.services', level='INFO') as logs:
            services.get_availability(local_date=TODAY, local_minutes=0)

        self.assertIn('Computed availability for 2026-03-02', logs.output[-1])

    def test_update_service_duration_validates(self):
        with self.assertRaises(ValueError):
            services.update_service_duration(self.retouching, 0)

    def test_confirm_rejects_overlapping_booking(self):
        self._confirmed_booking()
        clash = services.create_booking(
            customer_name='Bo', service='Hair Grooming', day=TOMORROW, time='10:00 AM'
        )

        with self.assertRaises(ValueError):
            services.confirm_booking(clash)

        clash.refresh_from_db()
        self.assertEqual(clash.status, 'pending')
        self.assertEqual(Booking.objects.confirmed().count(), 1)

    def test_confirm_allows_back_to_back_bookings(self):
        self._confirmed_booking()
        follow_on = self._confirmed_booking(service='Hair Grooming', time='11:30 AM')

        self.assertEqual(follow_on.status, 'confirmed')
        self.assertEqual(Booking.objects.confirmed().on_date(TOMORROW).count(), 2)

    def test_confirm_ignores_other_dates_and_cancelled_bookings(self):
        services.cancel_booking(self._confirmed_booking())
        self._confirmed_booking(day=TOMORROW + timedelta(days=1))

        booking = self._confirmed_booking()
        self.assertEqual(booking.status, 'confirmed')

    def test_create_booking_for_unknown_service_has_no_label(self):
        booking = services.create_booking(
            customer_name='Ada', service='Bridal Package', day=TOMORROW, time='9:00 AM'
        )
        self.assertEqual(booking.duration, '')
        self.assertEqual(booking.status, 'pending')


class AvailabilitySettingsCheckTests(SimpleTestCase):
    """Test that bad AVAILABILITY settings are caught at startup."""

    def test_default_settings_pass(self):
        self.assertEqual(check_availability_settings(None), [])

    @override_settings(AVAILABILITY={'DEFAULT_DAY_START': '9am', 'DEFAULT_DAY_END': '6:00 PM'})
    def test_malformed_hours(self):
        with self.assertRaises(ImproperlyConfigured):
            services.get_booking_policy()

        errors = check_availability_settings(None)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].id, 'availability.E001')
        self.assertIn('9am', errors[0].msg)

    @override_settings(AVAILABILITY={'DEFAULT_DAY_START': '6:00 PM', 'DEFAULT_DAY_END': '9:00 AM'})
    def test_start_after_end(self):
        with self.assertRaises(ImproperlyConfigured):
            services.get_booking_policy()

        self.assertEqual([error.id for error in check_availability_settings(None)], ['availability.E001'])


class BookingLifecycleTests(TestCase):
    """Test booking status transitions."""

    def setUp(self):
        self.booking = services.create_booking(
            customer_name='Ada',
            service='Retouching',
            day=TOMORROW,
            time='9:00 AM'
        )

    def test_confirm_then_complete(self):
        services.confirm_booking(self.booking)
        self.assertEqual(self.booking.status, 'confirmed')

        services.complete_booking(self.booking)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, 'completed')

    def test_confirm_only_from_pending(self):
        services.confirm_booking(self.booking)
        with self.assertRaises(ValueError):
            services.confirm_booking(self.booking)

    def test_complete_requires_confirmation(self):
        with self.assertRaises(ValueError):
            services.complete_booking(self.booking)

    def test_cancel_twice(self):
        services.cancel_booking(self.booking)
        with self.assertRaises(ValueError):
            services.cancel_booking(self.booking)

    def test_cannot_cancel_completed(self):
        services.confirm_booking(self.booking)
        services.complete_booking(self.booking)
        with self.assertRaises(ValueError):
            services.cancel_booking(self.booking)


class AvailabilityAPITests(APITestCase):
    """Test the availability endpoint."""

    url = '/api/availability/'

    def setUp(self):
        Service.objects.create(name='Wig Installation', duration_minutes=90)
        Service.objects.create(name='Retouching', duration_minutes=150)
        Service.objects.create(name='Hair Grooming', duration_minutes=120)

    def _get(self, **params):
        params.setdefault('localDate', TODAY.isoformat())
        params.setdefault('localMinutes', 0)
        return self.client.get(self.url, params)

    def _entry(self, response, day):
        return next((entry for entry in response.data if entry['date'] == day.isoformat()), None)

    def test_response_shape(self):
        response = self._get()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 61)
        self.assertEqual(response.data[0]['date'], '2026-03-02')
        self.assertEqual(
            sorted(response.data[0]['intervalSlots']),
            ['Hair Grooming', 'Retouching', 'Wig Installation']
        )
        self.assertEqual(
            response.data[0]['intervalSlots']['Wig Installation'][0],
            {'start': '9:00 AM', 'end': '10:30 AM'}
        )

    def test_today_lead_time(self):
        response = self._get(localMinutes=877)
        today = self._entry(response, TODAY)

        self.assertEqual(
            today['intervalSlots']['Wig Installation'],
            [{'start': '3:10 PM', 'end': '4:40 PM'}]
        )

    def test_invalid_minutes_rejected(self):
        response = self._get(localMinutes=1440)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_date_rejected(self):
        response = self._get(localDate='03/02/2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_stored_time_is_bad_request(self):
        booking = Booking.objects.create(
            customer_name='Ada', service='Retouching', date=TOMORROW, time='9:00 AM', status='confirmed'
        )
        Booking.objects.filter(pk=booking.pk).update(time='9h00')

        response = self._get()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('9h00', response.data['detail'])

    def test_booking_flow_changes_availability(self):
        response = self.client.post('/api/bookings/', {
            'customer_name': 'Ada',
            'service': 'Retouching',
            'date': TOMORROW.isoformat(),
            'time': '9:00 AM',
            'email': 'ada@example.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        booking_id = response.data['id']

        grooming = self._entry(self._get(), TOMORROW)['intervalSlots']['Hair Grooming']
        self.assertEqual(grooming[0]['start'], '9:00 AM')

        response = self.client.post(f'/api/bookings/{booking_id}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'confirmed')

        grooming = self._entry(self._get(), TOMORROW)['intervalSlots']['Hair Grooming']
        self.assertEqual(
            [slot['start'] for slot in grooming],
            ['11:30 AM', '1:00 PM', '1:30 PM', '3:00 PM', '3:30 PM']
        )

        response = self.client.post(f'/api/bookings/{booking_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        grooming = self._entry(self._get(), TOMORROW)['intervalSlots']['Hair Grooming']
        self.assertEqual(grooming[0]['start'], '9:00 AM')

    def test_blocked_override_via_api(self):
        response = self.client.put(
            f'/api/overrides/{TOMORROW.isoformat()}/',
            {'blocked': True, 'note': 'Closed'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertIsNone(self._entry(self._get(), TOMORROW))

        response = self.client.delete(f'/api/overrides/{TOMORROW.isoformat()}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(self._entry(self._get(), TOMORROW))

    def test_duration_change_via_api(self):
        response = self.client.patch('/api/services/Wig%20Installation/', {'duration_minutes': 60}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['duration_minutes'], 60)

        slots = self._entry(self._get(), TOMORROW)['intervalSlots']['Wig Installation']
        self.assertEqual(len(slots), 9)
        self.assertEqual(slots[-1], {'start': '5:00 PM', 'end': '6:00 PM'})


class CatalogAndOverrideAPITests(APITestCase):
    """Test service, override and booking endpoints."""

    def test_ping(self):
        response = self.client.get('/api/ping/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])

    def test_create_and_list_services(self):
        response = self.client.post('/api/services/', {'name': 'Blow Dry', 'duration_minutes': 30}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/services/')
        self.assertEqual([row['name'] for row in response.data], ['Blow Dry'])

    def test_service_duration_must_be_positive(self):
        Service.objects.create(name='Blow Dry', duration_minutes=30)
        response = self.client.patch('/api/services/Blow%20Dry/', {'duration_minutes': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_service_is_404(self):
        response = self.client.get('/api/services/Nothing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_custom_hours_override(self):
        response = self.client.put(
            f'/api/overrides/{TOMORROW.isoformat()}/',
            {'times': ['10:00 AM', '3:00 PM']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['times'], ['10:00 AM', '3:00 PM'])

        response = self.client.get('/api/overrides/')
        self.assertEqual(len(response.data), 1)
        self.assertFalse(response.data[0]['blocked'])

    def test_override_with_malformed_time_rejected(self):
        response = self.client.put(
            f'/api/overrides/{TOMORROW.isoformat()}/',
            {'times': ['10am']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(DayOverride.objects.exists())

    def test_override_with_descending_times_rejected(self):
        response = self.client.put(
            f'/api/overrides/{TOMORROW.isoformat()}/',
            {'times': ['3:00 PM', '10:00 AM']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_override_bad_path_date(self):
        response = self.client.put('/api/overrides/tomorrow/', {'blocked': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_clear_missing_override_is_404(self):
        response = self.client.delete(f'/api/overrides/{TOMORROW.isoformat()}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_booking_with_malformed_time_rejected(self):
        response = self.client.post('/api/bookings/', {
            'customer_name': 'Ada',
            'service': 'Retouching',
            'date': TOMORROW.isoformat(),
            'time': '9am',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_transition_is_bad_request(self):
        booking = services.create_booking(customer_name='Ada', service='Retouching', day=TOMORROW, time='9:00 AM')

        response = self.client.post(f'/api/bookings/{booking.pk}/complete/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_confirm_overlap_is_bad_request(self):
        first = services.create_booking(customer_name='Ada', service='Retouching', day=TOMORROW, time='9:00 AM')
        second = services.create_booking(customer_name='Bo', service='Retouching', day=TOMORROW, time='9:30 AM')

        response = self.client.post(f'/api/bookings/{first.pk}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(f'/api/bookings/{second.pk}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('overlaps a confirmed booking', response.data['detail'])

    def test_list_bookings_by_status(self):
        pending = services.create_booking(customer_name='Ada', service='Retouching', day=TOMORROW, time='9:00 AM')
        confirmed = services.create_booking(customer_name='Bo', service='Retouching', day=TOMORROW, time='2:00 PM')
        services.confirm_booking(confirmed)

        response = self.client.get('/api/bookings/', {'status': 'confirmed'})
        self.assertEqual([row['id'] for row in response.data], [confirmed.pk])

        response = self.client.get('/api/bookings/')
        self.assertEqual({row['id'] for row in response.data}, {pending.pk, confirmed.pk})


class ShowAvailabilityCommandTests(TestCase):
    """Test the show_availability management command."""

    def test_prints_window(self):
        Service.objects.create(name='Wig Installation', duration_minutes=90)
        out = StringIO()

        call_command('show_availability', '--date', '2026-03-02', '--minutes', '0', stdout=out)

        output = out.getvalue()
        self.assertIn('2026-03-02', output)
        self.assertIn('Wig Installation: 9:00 AM, 10:30 AM, 12:00 PM, 1:30 PM, 3:00 PM, 4:30 PM', output)
        self.assertIn('61 date(s) with availability', output)

    def test_empty_catalog(self):
        out = StringIO()
        call_command('show_availability', '--date', '2026-03-02', '--minutes', '0', stdout=out)
        self.assertIn('No availability', out.getvalue())

    def test_invalid_input(self):
        with self.assertRaises(CommandError):
            call_command('show_availability', '--date', '2026-03-02', '--minutes', '2000', stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command('show_availability', '--date', 'someday', stdout=StringIO())
