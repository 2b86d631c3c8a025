# pt_booking/services/slots/__init__.py
"""
Slots module.

Kernel: bookable items → grouped time slices (pure, no I/O)
Links: signed booking tokens + expirable booking data in Redis
"""

from .config import SlicerConfig, DateRange, get_slicer_config
from .models import (
    BookableItem,
    DateGroup,
    SliceCriteria,
    Staff,
    TimeSlice,
    item_content_id,
    normalize_schedule_items,
    parse_bookable_items,
)
from .calculator import compute_slices, iter_slices, partition
from .tokens import TOKEN_ARGS, generate_token, validate_token
from .booking_store import BookingRedisStore

__all__ = [
    "SlicerConfig",
    "DateRange",
    "get_slicer_config",
    "BookableItem",
    "DateGroup",
    "SliceCriteria",
    "Staff",
    "TimeSlice",
    "item_content_id",
    "normalize_schedule_items",
    "parse_bookable_items",
    "compute_slices",
    "iter_slices",
    "partition",
    "TOKEN_ARGS",
    "generate_token",
    "validate_token",
    "BookingRedisStore",
]
