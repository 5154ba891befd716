"""
URL routing for the availability API.
"""

from django.urls import path
from .views import (
    PingView,
    AvailabilityView,
    ServiceListCreateView,
    ServiceDetailView,
    DayOverrideListView,
    DayOverrideDetailView,
    BookingListCreateView,
    BookingConfirmView,
    BookingCancelView,
    BookingCompleteView,
)

urlpatterns = [
    path('ping/', PingView.as_view(), name='ping'),
    path('availability/', AvailabilityView.as_view(), name='availability'),
    path('services/', ServiceListCreateView.as_view(), name='service-list-create'),
    path('services/<str:name>/', ServiceDetailView.as_view(), name='service-detail'),
    path('overrides/', DayOverrideListView.as_view(), name='override-list'),
    path('overrides/<str:day>/', DayOverrideDetailView.as_view(), name='override-detail'),
    path('bookings/', BookingListCreateView.as_view(), name='booking-list-create'),
    path('bookings/<int:pk>/confirm/', BookingConfirmView.as_view(), name='booking-confirm'),
    path('bookings/<int:pk>/cancel/', BookingCancelView.as_view(), name='booking-cancel'),
    path('bookings/<int:pk>/complete/', BookingCompleteView.as_view(), name='booking-complete'),
]
