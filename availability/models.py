"""
Models for the salon booking system.

These are the sources the availability engine reads from:
- Service holds the live catalog (name -> duration)
- DayOverride holds per-date blocked days and custom hours
- Booking holds customer reservations and their lifecycle status
"""

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .exceptions import MalformedTime
from .managers import BookingManager, DayOverrideManager, ServiceManager
from .timeutils import parse_time


class Service(models.Model):
    """
    A bookable service and its duration.

    Durations are edited by an administrator at any time; availability is
    always computed from the current row values.
    """

    name = models.CharField(max_length=120, unique=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ServiceManager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class DayOverride(models.Model):
    """
    Administrator exception to the default hours for one date.

    blocked=True closes the date entirely. Otherwise ``times`` is an ordered
    list of 12-hour boundary times; the day opens at the first one and
    closes one hour after the last one. An empty list means default hours.
    """

    date = models.DateField(unique=True)
    blocked = models.BooleanField(default=False)
    times = models.JSONField(default=list, blank=True)
    note = models.CharField(max_length=200, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DayOverrideManager()

    class Meta:
        ordering = ['date']

    def __str__(self):
        if self.blocked:
            return f"{self.date} [blocked]"
        if self.times:
            return f"{self.date} {self.times[0]} - {self.times[-1]}"
        return f"{self.date} [default hours]"

    def clean(self):
        """Validate boundary times."""
        super().clean()

        # Form JSONField turns an empty input into None.
        if self.times is None:
            self.times = []

        if not isinstance(self.times, list):
            raise ValidationError({'times': 'Times must be a list of "H:MM AM" strings.'})

        try:
            minutes = [parse_time(value) for value in self.times]
        except MalformedTime as exc:
            raise ValidationError({'times': str(exc)})

        if minutes != sorted(minutes):
            raise ValidationError({'times': 'Times must be in ascending order.'})

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class Booking(models.Model):
    """
    A customer reservation for one service at one start time.

    Only confirmed bookings occupy time in the availability calendar.
    ``service`` is stored by name so bookings for services that were later
    renamed or removed keep their ``duration`` label as a fallback.
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('cancelled', 'Cancelled'),
        ('completed', 'Completed'),
    ]

    reference = models.CharField(max_length=64, unique=True, null=True, blank=True)
    customer_name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=40, blank=True, default='')

    service = models.CharField(max_length=120)
    date = models.DateField()
    time = models.CharField(max_length=16, help_text='Start time, e.g. "9:00 AM"')
    duration = models.CharField(
        max_length=40,
        blank=True,
        default='',
        help_text='Duration label captured at booking time, e.g. "90 mins"'
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingManager()

    class Meta:
        ordering = ['date', 'created_at']
        indexes = [
            models.Index(fields=['date', 'status'], name='availabilit_date_6a1f3c_idx'),
            models.Index(fields=['status'], name='availabilit_status_2b9e4d_idx'),
        ]

    def __str__(self):
        status_str = f" [{self.status}]" if self.status != 'confirmed' else ""
        return f"{self.service} - {self.date} {self.time}{status_str}"

    @property
    def start_minutes(self):
        """Start time as minutes since midnight."""
        return parse_time(self.time)

    def clean(self):
        """Validate the start time."""
        super().clean()

        try:
            parse_time(self.time)
        except MalformedTime as exc:
            raise ValidationError({'time': str(exc)})

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)
