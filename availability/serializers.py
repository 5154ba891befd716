"""
Serializers for the salon booking API.
"""

from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .exceptions import MalformedTime
from .models import Booking, DayOverride, Service
from .timeutils import format_time, parse_time


class TwelveHourTimeField(serializers.CharField):
    """A "9:00 AM" string validated against the 12-hour grammar."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        try:
            parse_time(value)
        except MalformedTime as exc:
            raise serializers.ValidationError(str(exc))
        return value.strip()


class AvailabilityQuerySerializer(serializers.Serializer):
    """Serializer for availability query parameters."""

    localDate = serializers.DateField(required=False, allow_null=True)
    localMinutes = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=0,
        max_value=1439
    )


class SlotSerializer(serializers.Serializer):
    """Renders an engine Slot as 12-hour clock strings."""

    start = serializers.SerializerMethodField()
    end = serializers.SerializerMethodField()

    def get_start(self, slot):
        return format_time(slot.start)

    def get_end(self, slot):
        return format_time(slot.end)


class DayAvailabilitySerializer(serializers.Serializer):
    """Renders one DayAvailability as {date, intervalSlots}."""

    date = serializers.DateField(source='day')
    intervalSlots = serializers.SerializerMethodField()

    def get_intervalSlots(self, day):
        return {
            name: SlotSerializer(slots, many=True).data
            for name, slots in day.services.items()
        }


class ServiceSerializer(serializers.ModelSerializer):
    """Serializer for reading/creating catalog entries."""

    class Meta:
        model = Service
        fields = ['id', 'name', 'duration_minutes', 'updated_at']
        read_only_fields = ['id', 'updated_at']


class ServiceDurationSerializer(serializers.Serializer):
    """Serializer for changing a service duration."""

    duration_minutes = serializers.IntegerField(min_value=1)


class DayOverrideReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying DayOverride (output)."""

    class Meta:
        model = DayOverride
        fields = ['date', 'blocked', 'times', 'note', 'updated_at']


class DayOverrideWriteSerializer(serializers.Serializer):
    """Serializer for setting a day override (input)."""

    blocked = serializers.BooleanField(default=False)
    times = serializers.ListField(child=TwelveHourTimeField(), required=False, default=list)
    note = serializers.CharField(required=False, allow_blank=True, default='', max_length=200)

    def validate_times(self, value):
        """Ensure boundary times ascend."""
        minutes = [parse_time(item) for item in value]
        if minutes != sorted(minutes):
            raise serializers.ValidationError('Times must be in ascending order.')
        return value


class BookingReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Booking (output)."""

    class Meta:
        model = Booking
        fields = [
            'id',
            'reference',
            'customer_name',
            'email',
            'phone',
            'service',
            'date',
            'time',
            'duration',
            'status',
            'created_at',
            'updated_at',
        ]


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for creating a pending booking."""

    customer_name = serializers.CharField(max_length=200)
    service = serializers.CharField(max_length=120)
    date = serializers.DateField()
    time = TwelveHourTimeField(max_length=16)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(required=False, allow_blank=True, default='', max_length=40)
    reference = serializers.CharField(
        required=False,
        allow_null=True,
        default=None,
        max_length=64,
        validators=[UniqueValidator(queryset=Booking.objects.all())]
    )


class BookingStatusQuerySerializer(serializers.Serializer):
    """Serializer for the booking list status filter."""

    status = serializers.ChoiceField(
        choices=[choice for choice, _ in Booking.STATUS_CHOICES],
        required=False,
        allow_null=True
    )
