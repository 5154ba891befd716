"""Views for the salon booking system."""

import logging

from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date

from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import AvailabilityError
from .models import Booking, DayOverride, Service
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingReadSerializer,
    BookingStatusQuerySerializer,
    DayAvailabilitySerializer,
    DayOverrideReadSerializer,
    DayOverrideWriteSerializer,
    ServiceDurationSerializer,
    ServiceSerializer,
)
from . import services

logger = logging.getLogger(__name__)


def _bad_request(exc):
    return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _parse_path_date(value):
    try:
        day = parse_date(value)
    except ValueError:
        day = None
    if day is None:
        raise NotFound(f'"{value}" is not a valid date.')
    return day


class PingView(APIView):
    """
    Health check.

    GET /api/ping/
    """

    def get(self, request):
        return Response({'success': True, 'message': 'Booking backend is running'})


class AvailabilityView(APIView):
    """
    Bookable slots per service for today and the next 60 days.

    GET /api/availability/?localDate=YYYY-MM-DD&localMinutes=N
    """

    def get(self, request):
        """List availability for the booking window."""
        query_serializer = AvailabilityQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        try:
            days = services.get_availability(
                local_date=query_serializer.validated_data.get('localDate'),
                local_minutes=query_serializer.validated_data.get('localMinutes')
            )
        except AvailabilityError as exc:
            logger.warning("Availability request rejected: %s", exc)
            return _bad_request(exc)

        serializer = DayAvailabilitySerializer(days, many=True)
        return Response(serializer.data)


class ServiceListCreateView(APIView):
    """
    List the service catalog or add a service.

    GET /api/services/ - List services
    POST /api/services/ - Add a service
    """

    def get(self, request):
        """List all services."""
        serializer = ServiceSerializer(Service.objects.all(), many=True)
        return Response(serializer.data)

    def post(self, request):
        """Add a service to the catalog."""
        serializer = ServiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = services.create_service(
            name=serializer.validated_data['name'],
            duration_minutes=serializer.validated_data['duration_minutes']
        )
        return Response(ServiceSerializer(service).data, status=status.HTTP_201_CREATED)


class ServiceDetailView(APIView):
    """
    Retrieve a service or change its duration.

    GET /api/services/{name}/ - Retrieve service
    PATCH /api/services/{name}/ - Change duration
    """

    def get(self, request, name):
        service = get_object_or_404(Service, name=name)
        return Response(ServiceSerializer(service).data)

    def patch(self, request, name):
        """Change a service duration."""
        service = get_object_or_404(Service, name=name)
        serializer = ServiceDurationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = services.update_service_duration(
            service,
            serializer.validated_data['duration_minutes']
        )
        return Response(ServiceSerializer(updated).data)


class DayOverrideListView(APIView):
    """
    List all day overrides.

    GET /api/overrides/
    """

    def get(self, request):
        serializer = DayOverrideReadSerializer(DayOverride.objects.all(), many=True)
        return Response(serializer.data)


class DayOverrideDetailView(APIView):
    """
    Retrieve, set, or clear the override for a date.

    GET /api/overrides/{date}/ - Retrieve override
    PUT /api/overrides/{date}/ - Block the date or set custom hours
    DELETE /api/overrides/{date}/ - Restore default hours
    """

    def get(self, request, day):
        override = get_object_or_404(DayOverride, date=_parse_path_date(day))
        return Response(DayOverrideReadSerializer(override).data)

    def put(self, request, day):
        """Create or replace the override for a date."""
        target = _parse_path_date(day)
        serializer = DayOverrideWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            override = services.set_day_override(
                target,
                blocked=serializer.validated_data['blocked'],
                times=serializer.validated_data['times'],
                note=serializer.validated_data['note']
            )
        except ValueError as exc:
            return _bad_request(exc)

        return Response(DayOverrideReadSerializer(override).data)

    def delete(self, request, day):
        """Clear the override for a date."""
        target = _parse_path_date(day)
        if not services.clear_day_override(target):
            raise NotFound(f'No override for {target}.')

        return Response({
            'message': f'Override for {target} has been cleared.'
        }, status=status.HTTP_200_OK)


class BookingListCreateView(APIView):
    """
    List bookings or create a pending booking.

    GET /api/bookings/?status=confirmed - List bookings
    POST /api/bookings/ - Create a pending booking
    """

    def get(self, request):
        """List bookings, optionally filtered by status."""
        query_serializer = BookingStatusQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        bookings = Booking.objects.all()
        status_filter = query_serializer.validated_data.get('status')
        if status_filter:
            bookings = bookings.with_status(status_filter)

        serializer = BookingReadSerializer(bookings, many=True)
        return Response(serializer.data)

    def post(self, request):
        """Create a pending booking."""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        try:
            booking = services.create_booking(
                customer_name=data['customer_name'],
                service=data['service'],
                day=data['date'],
                time=data['time'],
                email=data.get('email', ''),
                phone=data.get('phone', ''),
                reference=data.get('reference')
            )
        except AvailabilityError as exc:
            return _bad_request(exc)

        return Response(BookingReadSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingTransitionView(APIView):
    """
    Move a booking through its lifecycle.

    POST /api/bookings/{id}/confirm/
    POST /api/bookings/{id}/cancel/
    POST /api/bookings/{id}/complete/
    """

    transition = None

    def post(self, request, pk):
        booking = get_object_or_404(Booking, pk=pk)

        try:
            updated = self.transition(booking)
        except ValueError as exc:
            return _bad_request(exc)

        return Response(BookingReadSerializer(updated).data)


class BookingConfirmView(BookingTransitionView):
    transition = staticmethod(services.confirm_booking)


class BookingCancelView(BookingTransitionView):
    transition = staticmethod(services.cancel_booking)


class BookingCompleteView(BookingTransitionView):
    transition = staticmethod(services.complete_booking)
