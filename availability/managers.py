"""
Custom managers and querysets for booking models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models


class ServiceQuerySet(models.QuerySet):
    """Custom queryset for Service model."""

    def named(self, name):
        """Get services by exact name."""
        return self.filter(name=name)


class ServiceManager(models.Manager):
    """Custom manager for Service model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return ServiceQuerySet(self.model, using=self._db)

    def named(self, name):
        return self.get_queryset().named(name)


class DayOverrideQuerySet(models.QuerySet):
    """Custom queryset for DayOverride model with chainable methods."""

    def in_date_range(self, start_date, end_date):
        """
        Get overrides between two dates (inclusive).

        Args:
            start_date: date object
            end_date: date object
        """
        return self.filter(date__gte=start_date, date__lte=end_date)


class DayOverrideManager(models.Manager):
    """Custom manager for DayOverride model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return DayOverrideQuerySet(self.model, using=self._db)

    def in_date_range(self, start_date, end_date):
        """
        Get overrides between two dates (inclusive).

        Args:
            start_date: date object
            end_date: date object
        """
        return self.get_queryset().in_date_range(start_date, end_date)


class BookingQuerySet(models.QuerySet):
    """Custom queryset for Booking model with chainable methods."""

    def confirmed(self):
        """Get confirmed bookings (the only ones that occupy time)."""
        return self.filter(status='confirmed')

    def with_status(self, status):
        return self.filter(status=status)

    def on_date(self, day):
        """
        Get bookings on a single date.

        Args:
            day: date object
        """
        return self.filter(date=day)

    def in_date_range(self, start_date, end_date):
        """
        Get bookings between two dates (inclusive).

        Args:
            start_date: date object
            end_date: date object
        """
        return self.filter(date__gte=start_date, date__lte=end_date)

    def confirmed_in_range(self, start_date, end_date):
        """Get confirmed bookings between two dates (inclusive)."""
        return self.confirmed().in_date_range(start_date, end_date)


class BookingManager(models.Manager):
    """Custom manager for Booking model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return BookingQuerySet(self.model, using=self._db)

    def confirmed(self):
        """Get confirmed bookings (the only ones that occupy time)."""
        return self.get_queryset().confirmed()

    def with_status(self, status):
        return self.get_queryset().with_status(status)

    def on_date(self, day):
        """
        Get bookings on a single date.

        Args:
            day: date object
        """
        return self.get_queryset().on_date(day)

    def in_date_range(self, start_date, end_date):
        """
        Get bookings between two dates (inclusive).

        Args:
            start_date: date object
            end_date: date object
        """
        return self.get_queryset().in_date_range(start_date, end_date)

    def confirmed_in_range(self, start_date, end_date):
        """Get confirmed bookings between two dates (inclusive)."""
        return self.get_queryset().confirmed_in_range(start_date, end_date)
