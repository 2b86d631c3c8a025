# pt_booking/services/slots/models.py
"""
Slicer data model.

BookableItem : staffed appointment block returned by MINDBODY (read-only)
SliceCriteria: caller search filters, rendered back as link query args
TimeSlice    : one fixed-duration bookable unit carved out of an item
DateGroup    : slices of one calendar day, keyed by staff name

parse_bookable_items() is the boundary deserializer: the SOAP proxy returns
a bare object instead of a one-element list when only one item matches.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ...exceptions import MalformedInput
from ...utils.hashing import hash_content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Staff:
    id: str
    name: str
    email: str | None = None
    mobile_phone: str | None = None
    is_male: bool | None = None


@dataclass(frozen=True)
class BookableItem:
    staff: Staff
    start: datetime
    end: datetime
    session_type_id: int
    default_duration: int  # minutes
    program_id: int | None = None
    location_id: int | None = None
    id: str | None = None

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.default_duration)

    @classmethod
    def from_api(cls, raw: dict) -> "BookableItem":
        """
        Build item from a MINDBODY ScheduleItem mapping.

        Raises:
            MalformedInput: missing fields, unparsable timestamps
                or a non-positive session length.
        """
        try:
            staff_raw = raw["Staff"]
            session_type = raw["SessionType"]
            start = _parse_datetime(raw["StartDateTime"])
            end = _parse_datetime(raw["EndDateTime"])
            duration = int(session_type["DefaultTimeLength"])
            staff = Staff(
                id=str(staff_raw["ID"]),
                name=staff_raw.get("Name") or "",
                email=staff_raw.get("Email"),
                mobile_phone=staff_raw.get("MobilePhone"),
                is_male=staff_raw.get("isMale"),
            )
            item_id = raw.get("ID")
            return cls(
                id=str(item_id) if item_id else None,
                staff=staff,
                start=start,
                end=end,
                session_type_id=int(session_type["ID"]),
                default_duration=duration,
                program_id=_nested_id(raw.get("Program")),
                location_id=_nested_id(raw.get("Location")),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedInput(f"Unusable bookable item: {e!r}") from e

    def __post_init__(self):
        if self.default_duration <= 0:
            raise MalformedInput(f"Session length must be positive, got {self.default_duration}")


def item_content_id(item: BookableItem) -> str:
    """
    Deterministic id for items the provider returned without one.

    Same item fields → same id across requests; booking tokens and
    highlight links depend on it.
    """
    return hash_content({
        "staff": {
            "id": item.staff.id,
            "name": item.staff.name,
            "email": item.staff.email,
            "mobile_phone": item.staff.mobile_phone,
            "is_male": item.staff.is_male,
        },
        "start": item.start.isoformat(),
        "end": item.end.isoformat(),
        "session_type_id": item.session_type_id,
        "default_duration": item.default_duration,
        "program_id": item.program_id,
        "location_id": item.location_id,
    })


@dataclass(frozen=True)
class SliceCriteria:
    location_id: int
    program_id: int
    session_type_id: int
    trainer: str = "all"
    date_range: str = "3days"
    start_hour: int = 4
    end_hour: int = 22
    bid: str | None = None
    context: str | None = None

    @property
    def all_trainers(self) -> bool:
        return not self.trainer or self.trainer == "all"

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour + 1)

    def to_query(self) -> dict[str, str]:
        """Criteria under public query argument names (link building, tokens)."""
        query = {
            "location": str(self.location_id),
            "p": str(self.program_id),
            "s": str(self.session_type_id),
            "trainer": str(self.trainer),
            "dr": self.date_range,
            "st": str(self.start_hour),
            "et": str(self.end_hour),
        }
        if self.bid is not None:
            query["bid"] = self.bid
        if self.context is not None:
            query["context"] = self.context
        return query


@dataclass
class TimeSlice:
    id: str
    start: datetime
    end: datetime
    staff_id: str
    staff_name: str
    group_date: str
    item: BookableItem
    excluded: bool = False
    highlighted: bool = False


@dataclass
class DateGroup:
    weekday: str
    trainers: dict[str, list[TimeSlice]] = field(default_factory=dict)

    def add(self, time_slice: TimeSlice) -> None:
        self.trainers.setdefault(time_slice.staff_name, []).append(time_slice)

    def slices(self) -> list[TimeSlice]:
        return [s for group in self.trainers.values() for s in group]


# ── Boundary ─────────────────────────────────────────────────────────────


def normalize_schedule_items(payload: Any) -> list[dict]:
    """
    Unwrap ScheduleItems payload into a list of raw item mappings.

    Accepts {"ScheduleItem": [...]}, {"ScheduleItem": {...}} or a bare list.
    """
    if not payload:
        return []

    items = payload.get("ScheduleItem") if isinstance(payload, dict) else payload
    if not items:
        return []
    if isinstance(items, dict):
        return [items]
    return list(items)


def parse_bookable_items(payload: Any) -> list[BookableItem]:
    """Deserialize provider payload, skipping malformed items."""
    items = []
    for raw in normalize_schedule_items(payload):
        try:
            items.append(BookableItem.from_api(raw))
        except MalformedInput as e:
            logger.warning("Skipping bookable item: %s", e)
    return items


def _parse_datetime(value: str) -> datetime:
    """ISO-like provider timestamp → naive local datetime."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _nested_id(value: Any) -> int | None:
    if isinstance(value, dict):
        value = value.get("ID")
    if value in (None, ""):
        return None
    return int(value)
