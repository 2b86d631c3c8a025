# pt_booking/services/searcher.py
"""
Personal training search.

One search request:
  1. Validate criteria (InvalidArgument before anything else)
  2. One GetBookableItems call to the MINDBODY proxy
  3. Slice items (services.slots.calculator)
  4. Sign a booking link per slice, store hidden booking data in Redis
     (one pipeline per search)

Search form listings (locations, programs, session types, trainers)
come from the same proxy.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Mapping

from pydantic import ValidationError

from ..exceptions import InvalidArgument
from ..schemas.search import SearchQuery
from ..utils.mindbody import MindbodyClient
from .slots import (
    BookingRedisStore,
    DateGroup,
    SliceCriteria,
    SlicerConfig,
    TimeSlice,
    compute_slices,
    generate_token,
    get_slicer_config,
    iter_slices,
    normalize_schedule_items,
    parse_bookable_items,
    validate_token,
)
from .slots.config import date_range_end

logger = logging.getLogger(__name__)

# Trainer list is built from the widest search range
TRAINERS_HORIZON_DAYS = 21

BOOKING_DATE_FORMAT = "%a, %d %b %Y %H:%M"
SLICE_TIME_FORMAT = "%I:%M %p"


@dataclass
class SearchResults:
    criteria: SliceCriteria
    start_date: date
    end_date: date
    days: dict[str, DateGroup]
    links: dict[str, dict[str, str]] = field(default_factory=dict)


def criteria_from_query(
    query: Mapping[str, object],
    config: SlicerConfig | None = None,
) -> SliceCriteria:
    """
    Build criteria from request query.

    Raises:
        InvalidArgument: required argument missing or hour window invalid.
    """
    config = config or get_slicer_config()
    try:
        parsed = SearchQuery.model_validate(dict(query))
    except ValidationError as e:
        raise InvalidArgument(f"Invalid search criteria: {e.error_count()} error(s)") from e

    if parsed.st < config.min_hour or parsed.et > config.max_hour:
        raise InvalidArgument(
            f"Hour window {parsed.st}..{parsed.et} outside {config.min_hour}..{config.max_hour}"
        )

    return SliceCriteria(
        location_id=parsed.location,
        program_id=parsed.p,
        session_type_id=parsed.s,
        trainer=parsed.trainer,
        date_range=parsed.dr,
        start_hour=parsed.st,
        end_hour=parsed.et,
        bid=parsed.bid,
        context=parsed.context,
    )


def booking_data(time_slice: TimeSlice) -> dict:
    """Data hidden from the link and stored under its token."""
    staff = time_slice.item.staff
    return {
        "bid": time_slice.id,
        "staff_id": staff.id,
        "is_male": staff.is_male,
        "trainer_name": staff.name,
        "trainer_email": staff.email,
        "trainer_phone": staff.mobile_phone,
        "start_date": time_slice.start.strftime(BOOKING_DATE_FORMAT),
        "start_time": int(time_slice.start.timestamp()),
    }


def slice_label(time_slice: TimeSlice) -> str:
    """Label like "09:00 am - 09:30 am"."""
    start = time_slice.start.strftime(SLICE_TIME_FORMAT).lower()
    end = time_slice.end.strftime(SLICE_TIME_FORMAT).lower()
    return f"{start} - {end}"


def search_link_query(criteria: SliceCriteria) -> dict[str, str]:
    """Query returning the user to the last step of the search form."""
    query = {
        "step": "4",
        "mb_location": str(criteria.location_id),
        "mb_program": str(criteria.program_id),
        "mb_session_type": str(criteria.session_type_id),
        "mb_trainer": str(criteria.trainer),
        "mb_date_range": criteria.date_range,
        "mb_start_time": str(criteria.start_hour),
        "mb_end_time": str(criteria.end_hour),
    }
    if criteria.context is not None:
        query["context"] = criteria.context
        query["location"] = str(criteria.location_id)
        if not criteria.all_trainers:
            query["trainer"] = str(criteria.trainer)
    return query


def _options(entries: list[dict]) -> dict[int, str]:
    """{ID, Name} mappings → options; entries without a numeric id are skipped."""
    options = {}
    for entry in entries:
        try:
            options[int(entry["ID"])] = entry.get("Name") or ""
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping listing entry without id: %s", entry)
    return options


class ResultsSearcher:
    """Search orchestration over MINDBODY, the slicer and the booking store."""

    def __init__(
        self,
        client: MindbodyClient,
        store: BookingRedisStore,
        config: SlicerConfig | None = None,
    ):
        self.client = client
        self.store = store
        self.config = config or get_slicer_config()

    def build_booking_params(self, criteria: SliceCriteria, today: date) -> dict:
        """GetBookableItems arguments for criteria."""
        return {
            "session_type_id": criteria.session_type_id,
            "location_id": criteria.location_id,
            "start_date": today,
            "end_date": date_range_end(today, criteria.date_range),
            "staff_id": None if criteria.all_trainers else str(criteria.trainer),
        }

    def search(
        self,
        criteria: SliceCriteria,
        now: datetime | None = None,
        can_view_test_trainer: bool = False,
    ) -> SearchResults:
        """
        Run a search and persist booking data for every slice.

        Raises:
            UpstreamUnavailable: proxy failure (not retried).
        """
        now = now or datetime.now()
        params = self.build_booking_params(criteria, now.date())

        payload = self.client.get_bookable_items(**params)
        items = parse_bookable_items(payload)

        days = compute_slices(
            items,
            criteria,
            now,
            config=self.config,
            can_view_test_trainer=can_view_test_trainer,
        )

        links: dict[str, dict[str, str]] = {}
        entries: dict[str, dict] = {}
        base_query = criteria.to_query()
        for time_slice in iter_slices(days):
            query = {**base_query, "bid": time_slice.id}
            token = generate_token(query, self.config.hash_salt)
            query["token"] = token
            links[time_slice.id] = query
            entries[token] = booking_data(time_slice)

        self.store.store_many(entries)

        logger.info(
            "Search location=%s session_type=%s trainer=%s: %d items, %d slices",
            criteria.location_id,
            criteria.session_type_id,
            criteria.trainer,
            len(items),
            len(links),
        )

        return SearchResults(
            criteria=criteria,
            start_date=params["start_date"],
            end_date=params["end_date"],
            days=days,
            links=links,
        )

    def get_trainers(
        self,
        session_type_id: int,
        location_id: int,
        today: date | None = None,
        can_view_test_trainer: bool = False,
    ) -> dict[str, str]:
        """
        Trainer options for session type and location.

        MINDBODY can't filter staff by location without a date range,
        so trainers come from bookable items of the next 3 weeks.
        """
        today = today or date.today()
        payload = self.client.get_bookable_items(
            session_type_id=session_type_id,
            location_id=location_id,
            start_date=today,
            end_date=today + timedelta(days=TRAINERS_HORIZON_DAYS),
        )

        # Staff only: an item with bad timestamps still names its trainer
        options = {"all": "All"}
        for raw in normalize_schedule_items(payload):
            staff = raw.get("Staff") if isinstance(raw, dict) else None
            if not isinstance(staff, dict) or staff.get("ID") in (None, ""):
                continue
            staff_id = str(staff["ID"])
            if self.config.is_test_trainer(staff_id) and not can_view_test_trainer:
                continue
            options[staff_id] = staff.get("Name") or ""

        return options

    # ── Search form listings ──

    def get_locations(self) -> dict[int, str]:
        """Location options: MINDBODY id → name."""
        return _options(self.client.get_locations())

    def get_programs(self) -> dict[int, str]:
        """Appointment program options."""
        return _options(self.client.get_programs())

    def get_session_types(self, program_id: int) -> dict[int, str]:
        """Session type options of a program."""
        return _options(self.client.get_session_types(program_id))

    def get_duration(self, session_type_id: int) -> int | None:
        """Default length in minutes of a session type, None when unknown."""
        for session_type in self.client.get_session_types():
            if str(session_type.get("ID")) != str(session_type_id):
                continue
            try:
                return int(session_type["DefaultTimeLength"])
            except (KeyError, TypeError, ValueError):
                logger.warning("Session type %s has no usable length", session_type_id)
                return None
        return None

    def describe(self, criteria: SliceCriteria) -> dict[str, str]:
        """
        Names shown above the results.

        Unknown ids give an empty name.
        """
        return {
            "location_name": self.get_locations().get(criteria.location_id, ""),
            "program_name": self.get_programs().get(criteria.program_id, ""),
            "session_type_name": self.get_session_types(criteria.program_id).get(
                criteria.session_type_id, ""
            ),
        }

    def validate_link(self, query: Mapping[str, object]) -> bool:
        """Check the token of a booking link against its query."""
        if not validate_token(query, self.config.hash_salt):
            logger.warning("Invalid booking token for bid=%s", query.get("bid"))
            return False
        return True

    def get_booking(self, query: Mapping[str, object]) -> dict | None:
        """
        Booking data for a signed link.

        Returns:
            Stored data, or None for an invalid token or expired data.
        """
        if not self.validate_link(query):
            return None
        return self.store.get(str(query["token"]))
