"""
Management command to print the booking window's availability.

Useful for checking the effect of a duration change or a day override
without going through the API.
"""

from django.core.management.base import BaseCommand, CommandError

from availability import services
from availability.exceptions import AvailabilityError
from availability.timeutils import format_time, parse_local_date


class Command(BaseCommand):
    help = 'Print bookable slots per service for today and the next 60 days'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            default=None,
            help='Treat this YYYY-MM-DD date as today (default: server clock)'
        )
        parser.add_argument(
            '--minutes',
            type=int,
            default=None,
            help='Current minutes since midnight (default: server clock)'
        )

    def handle(self, *args, **options):
        try:
            local_date = parse_local_date(options['date']) if options['date'] else None
            days = services.get_availability(
                local_date=local_date,
                local_minutes=options['minutes']
            )
        except AvailabilityError as exc:
            raise CommandError(str(exc))

        if not days:
            self.stdout.write(self.style.WARNING('No availability in the booking window'))
            return

        for day in days:
            self.stdout.write(self.style.MIGRATE_HEADING(day.day.isoformat()))
            for name, slots in day.services.items():
                times = ', '.join(format_time(slot.start) for slot in slots)
                self.stdout.write(f'  {name}: {times}')

        self.stdout.write(
            self.style.SUCCESS(f'{len(days)} date(s) with availability')
        )
