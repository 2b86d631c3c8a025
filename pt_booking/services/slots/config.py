# pt_booking/services/slots/config.py
"""
Slicer configuration for bookable item slicing.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from functools import lru_cache


class DateRange(str, Enum):
    """Search horizon tokens accepted in the `dr` query argument."""

    SHORT = "3days"
    MEDIUM = "week"
    LONG = "3weeks"

    @property
    def days(self) -> int:
        return {"3days": 3, "week": 7, "3weeks": 21}[self.value]

    @classmethod
    def resolve(cls, value: str | None) -> "DateRange":
        """Unknown tokens fall back to the short range."""
        try:
            return cls(value)
        except ValueError:
            return cls.SHORT


@dataclass(frozen=True)
class SlicerConfig:
    """
    Configuration for the availability slicer.

    Attributes:
        min_hour: Earliest hour a search window may start at
        max_hour: Latest hour a search window may end at
        excluded_programs: Program ids shown without a booking link
        hide_minutes: Slices starting within this many minutes are hidden
        booking_ttl_seconds: Lifetime of stored booking metadata
        test_trainer_id: Reserved API test staff id, None = nothing reserved
        hash_salt: Secret used to sign booking links
    """
    min_hour: int = 4
    max_hour: int = 22
    excluded_programs: tuple[int, ...] = (4,)
    hide_minutes: int = 0
    booking_ttl_seconds: int = 86400  # 24 hours
    test_trainer_id: str | None = None
    hash_salt: str = ""

    def __post_init__(self):
        """Validate configuration."""
        if not 0 <= self.min_hour <= self.max_hour <= 23:
            raise ValueError(
                f"hour bounds must satisfy 0 <= min <= max <= 23, got {self.min_hour}..{self.max_hour}"
            )
        if self.booking_ttl_seconds <= 0:
            raise ValueError(f"booking_ttl_seconds must be positive, got {self.booking_ttl_seconds}")

    @property
    def hide_window(self) -> timedelta:
        """Grace period before now; non-positive values leave only "not in the past"."""
        return timedelta(minutes=max(self.hide_minutes, 0))

    def is_test_trainer(self, staff_id: str) -> bool:
        return self.test_trainer_id is not None and str(staff_id) == str(self.test_trainer_id)

    def is_excluded(self, program_id: int | None) -> bool:
        return program_id is not None and program_id in self.excluded_programs

    def time_options(self) -> dict[int, str]:
        """
        Hour labels available on the search form.

        4 → "4 am", 12 → "12 pm", 22 → "10 pm"
        """
        return {
            hour: format_hour(hour)
            for hour in range(self.min_hour, self.max_hour + 1)
        }


def format_hour(hour: int) -> str:
    """Convert hour (0-24) to "h am"/"h pm" label."""
    suffix = "am" if hour % 24 < 12 else "pm"
    display = hour % 12 or 12
    return f"{display} {suffix}"


def date_range_end(today: date, value: str | None) -> date:
    """Last day covered by a search started today."""
    return today + timedelta(days=DateRange.resolve(value).days)


@lru_cache
def get_slicer_config() -> SlicerConfig:
    """
    Get slicer configuration (singleton).

    Reads hide time, TTL, reserved trainer and salt from settings.
    """
    from ...config import settings

    return SlicerConfig(
        hide_minutes=settings.hide_time,
        booking_ttl_seconds=settings.booking_ttl_seconds,
        test_trainer_id=settings.test_trainer_id,
        hash_salt=settings.hash_salt,
    )
