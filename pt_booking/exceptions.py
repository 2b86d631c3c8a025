# pt_booking/exceptions.py
"""
Domain errors.

InvalidArgument     : search criteria missing or out of range (boundary check)
MalformedInput      : a single upstream item cannot be used (skipped, logged)
UpstreamUnavailable : MINDBODY proxy transport failure (propagated, no retry)
"""


class PTBookingError(Exception):
    """Base error for the booking service."""


class InvalidArgument(PTBookingError, ValueError):
    pass


class MalformedInput(PTBookingError, ValueError):
    pass


class UpstreamUnavailable(PTBookingError):
    pass
