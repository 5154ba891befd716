"""System checks for the availability settings."""

from django.core.checks import Error, register
from django.core.exceptions import ImproperlyConfigured


@register()
def check_availability_settings(app_configs, **kwargs):
    """Fail at startup when settings.AVAILABILITY cannot build a policy."""
    from .services import get_booking_policy

    try:
        get_booking_policy()
    except ImproperlyConfigured as exc:
        return [
            Error(
                str(exc),
                hint='Use 12-hour times such as "9:00 AM" and keep the start before the end.',
                obj='settings.AVAILABILITY',
                id='availability.E001',
            )
        ]
    return []
