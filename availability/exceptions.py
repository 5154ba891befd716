"""
Exceptions raised by the availability engine.
Raised in engine.py / timeutils.py and turned into 400 responses in views.py.
"""


class AvailabilityError(Exception):
    """Base exception for all availability errors."""
    pass


class MalformedTime(AvailabilityError, ValueError):
    """Raised when a time string is not a valid 12-hour clock time."""

    def __init__(self, value):
        self.value = value
        super().__init__(f'Malformed time: {value!r}')


class UnknownService(AvailabilityError, KeyError):
    """Raised when a service name is missing from the catalog."""

    def __init__(self, name):
        self.name = name
        super().__init__(name)

    def __str__(self):
        return f'Unknown service: {self.name!r}'


class InvalidWindowInput(AvailabilityError, ValueError):
    """Raised when the caller's notion of "now" cannot be used."""
    pass
