"""
Admin configuration for the availability app.
"""

from django.contrib import admin
from .models import Service, DayOverride, Booking


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Admin interface for the service catalog."""

    list_display = ['name', 'duration_minutes', 'updated_at']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(DayOverride)
class DayOverrideAdmin(admin.ModelAdmin):
    """Admin interface for DayOverride model."""

    list_display = ['date', 'blocked', 'times', 'note']
    list_filter = ['blocked']
    date_hierarchy = 'date'

    fieldsets = (
        ('Date', {
            'fields': ('date', 'blocked', 'note')
        }),
        ('Custom Hours', {
            'fields': ('times',),
            'description': 'Ordered "H:MM AM" times. Leave empty for default hours.'
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = ['customer_name', 'service', 'date', 'time', 'status']
    list_filter = ['status', 'service', 'date']
    search_fields = ['customer_name', 'email', 'phone', 'reference']
    date_hierarchy = 'date'

    fieldsets = (
        ('Customer', {
            'fields': ('customer_name', 'email', 'phone', 'reference')
        }),
        ('Appointment', {
            'fields': ('service', 'date', 'time', 'duration')
        }),
        ('Status', {
            'fields': ('status',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']
