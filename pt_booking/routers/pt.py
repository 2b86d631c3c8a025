# pt_booking/routers/pt.py
"""
Personal training API endpoints.

GET /pt/results        - Bookable time slices grouped by date and trainer
GET /pt/locations      - Location options
GET /pt/programs       - Appointment program options
GET /pt/session-types  - Session type options of a program
GET /pt/trainers       - Trainer options for location and session type
GET /pt/time-options   - Hour labels for the search window
GET /pt/book           - Booking data behind a signed slice link
"""

from datetime import datetime
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from redis import Redis

from ..config import settings
from ..redis_client import get_redis
from ..schemas.search import (
    BookingDataResponse,
    DayOut,
    SearchResultsResponse,
    SiteOption,
    SliceOut,
    TimeOption,
    TrainerOption,
    TrainerSlices,
)
from ..services.searcher import (
    ResultsSearcher,
    criteria_from_query,
    search_link_query,
    slice_label,
)
from ..services.slots import BookingRedisStore, get_slicer_config
from ..utils.mindbody import MindbodyClient, get_mindbody_client


router = APIRouter(prefix="/pt", tags=["pt"])


def get_searcher(
    redis: Redis = Depends(get_redis),
    client: MindbodyClient = Depends(get_mindbody_client),
) -> ResultsSearcher:
    config = get_slicer_config()
    return ResultsSearcher(client, BookingRedisStore(redis, config), config)


def can_view_test_trainer(
    x_internal_token: str | None = Header(None),
) -> bool:
    """Internal callers may see the API test trainer."""
    return bool(settings.internal_token) and x_internal_token == settings.internal_token


@router.get("/results", response_model=SearchResultsResponse)
def get_results(
    request: Request,
    searcher: ResultsSearcher = Depends(get_searcher),
    view_test_trainer: bool = Depends(can_view_test_trainer),
):
    """Search bookable slices (location, p, s, trainer, dr, st, et, bid?, context?)."""
    config = searcher.config
    criteria = criteria_from_query(request.query_params, config)

    results = searcher.search(
        criteria,
        now=datetime.now(),
        can_view_test_trainer=view_test_trainer,
    )

    days = []
    for date_key, group in results.days.items():
        trainers = []
        for name, slices in group.trainers.items():
            trainers.append(TrainerSlices(
                name=name,
                slices=[
                    SliceOut(
                        id=s.id,
                        start=s.start,
                        end=s.end,
                        label=slice_label(s),
                        excluded=s.excluded,
                        highlighted=s.highlighted,
                        # Excluded programs are listed without a booking link
                        book_query=None if s.excluded else results.links[s.id],
                    )
                    for s in slices
                ],
            ))
        days.append(DayOut(date=date_key, weekday=group.weekday, trainers=trainers))

    time_options = config.time_options()
    names = searcher.describe(criteria)

    return SearchResultsResponse(
        location_id=criteria.location_id,
        program_id=criteria.program_id,
        session_type_id=criteria.session_type_id,
        trainer=criteria.trainer,
        **names,
        start_time=time_options[criteria.start_hour],
        end_time=time_options[criteria.end_hour],
        start_date=results.start_date,
        end_date=results.end_date,
        days=days,
        back_query=search_link_query(criteria),
    )


@router.get("/locations", response_model=list[SiteOption])
def get_locations(searcher: ResultsSearcher = Depends(get_searcher)):
    options = searcher.get_locations()
    return [SiteOption(id=k, name=v) for k, v in options.items()]


@router.get("/programs", response_model=list[SiteOption])
def get_programs(searcher: ResultsSearcher = Depends(get_searcher)):
    """Programs with an appointment schedule."""
    options = searcher.get_programs()
    return [SiteOption(id=k, name=v) for k, v in options.items()]


@router.get("/session-types", response_model=list[SiteOption])
def get_session_types(
    program_id: int = Query(..., alias="p"),
    searcher: ResultsSearcher = Depends(get_searcher),
):
    options = searcher.get_session_types(program_id)
    return [SiteOption(id=k, name=v) for k, v in options.items()]


@router.get("/trainers", response_model=list[TrainerOption])
def get_trainers(
    location_id: int = Query(..., alias="location"),
    session_type_id: int = Query(..., alias="s"),
    searcher: ResultsSearcher = Depends(get_searcher),
    view_test_trainer: bool = Depends(can_view_test_trainer),
):
    """Trainer options; "all" comes first."""
    options = searcher.get_trainers(
        session_type_id,
        location_id,
        can_view_test_trainer=view_test_trainer,
    )
    return [TrainerOption(id=k, name=v) for k, v in options.items()]


@router.get("/time-options", response_model=list[TimeOption])
def get_time_options():
    """Hours allowed for st/et."""
    config = get_slicer_config()
    return [TimeOption(hour=h, label=label) for h, label in config.time_options().items()]


@router.get("/book", response_model=BookingDataResponse)
def get_booking(
    request: Request,
    searcher: ResultsSearcher = Depends(get_searcher),
):
    """Resolve a signed booking link to the stored booking data."""
    query = dict(request.query_params)
    if not searcher.validate_link(query):
        raise HTTPException(status_code=403, detail="Invalid booking link")

    data = searcher.store.get(query["token"])
    if data is None:
        raise HTTPException(status_code=404, detail="Booking link expired, please search again")

    return BookingDataResponse(**data)
