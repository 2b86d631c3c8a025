# pt_booking/schemas/search.py
"""
Pydantic schemas for personal training search API.
"""

from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator


class SearchQuery(BaseModel):
    """
    Search criteria as received in the query string.

    Short names are kept for link compatibility: p = program,
    s = session type, dr = date range, st/et = start/end hour, bid = slice id.
    """
    location: int
    p: int
    s: int
    trainer: str
    dr: str
    st: int = Field(ge=0, le=23)
    et: int = Field(ge=0, le=23)
    bid: str | None = None
    context: str | None = None

    @model_validator(mode="after")
    def check_window(self):
        # Windows spanning midnight are not supported
        if self.st > self.et:
            raise ValueError(f"start hour {self.st} is after end hour {self.et}")
        return self


class SliceOut(BaseModel):
    """A single bookable time slice."""
    id: str
    start: datetime
    end: datetime
    label: str = Field(description="\"09:00 am - 09:30 am\"")
    excluded: bool
    highlighted: bool
    book_query: dict[str, str] | None = Field(
        default=None,
        description="Signed query for the booking step; None for excluded programs",
    )


class TrainerSlices(BaseModel):
    name: str
    slices: list[SliceOut]


class DayOut(BaseModel):
    """Slices of one calendar day."""
    date: str = Field(description="\"June 01, 2026\"")
    weekday: str
    trainers: list[TrainerSlices]


class SearchResultsResponse(BaseModel):
    """Grouped search results."""
    location_id: int
    program_id: int
    session_type_id: int
    trainer: str
    location_name: str = ""
    program_name: str = ""
    session_type_name: str = ""
    start_time: str
    end_time: str
    start_date: date
    end_date: date
    days: list[DayOut]
    back_query: dict[str, str]


class SiteOption(BaseModel):
    """Location, program or session type option."""
    id: int
    name: str


class TrainerOption(BaseModel):
    id: str
    name: str


class TimeOption(BaseModel):
    hour: int
    label: str


class BookingDataResponse(BaseModel):
    """Booking metadata stored for a signed slice link."""
    bid: str
    staff_id: str
    is_male: bool | None = None
    trainer_name: str
    trainer_email: str | None = None
    trainer_phone: str | None = None
    start_date: str
    start_time: int
