# pt_booking/services/slots/calculator.py
"""
Availability slicer.

Turns MINDBODY bookable items into discrete bookable time slices:

  item 09:00-10:30, session 30 min → 09:00, 09:30, 10:00

Per item:
✓ reserved API test trainer (hidden unless permitted)
✓ trainer filter (unless "all")
✓ start/end hour inside the search window
Per slice:
✓ hide window: now + hide_window >= slice start → hidden
✓ remaining capacity: item end - slice start < session length → dropped

Result is grouped by "Month DD, YYYY" date, then by staff name, in the
order slices were produced. No I/O: now, config and permission come in
as arguments.
"""

from datetime import datetime, timedelta
from typing import Iterable, Iterator

from .config import SlicerConfig, get_slicer_config
from .models import BookableItem, DateGroup, SliceCriteria, TimeSlice, item_content_id

DATE_KEY_FORMAT = "%B %d, %Y"
WEEKDAY_FORMAT = "%A"


def compute_slices(
    items: Iterable[BookableItem] | None,
    criteria: SliceCriteria,
    now: datetime,
    config: SlicerConfig | None = None,
    can_view_test_trainer: bool = False,
) -> dict[str, DateGroup]:
    """
    Slice bookable items for display.

    Returns:
        Ordered dict mapping date key → DateGroup. Empty dict = nothing to book.
    """
    config = config or get_slicer_config()
    threshold = now + config.hide_window
    hours = criteria.hours

    days: dict[str, DateGroup] = {}

    for item in items or ():
        if not _is_visible_staff(item, criteria, config, can_view_test_trainer):
            continue

        # Both ends of the item must fall inside the hour window
        if item.start.hour not in hours or item.end.hour not in hours:
            continue

        item_id = item.id or item_content_id(item)
        duration = item.duration

        for index, slice_start in partition(item.start, item.end, item.default_duration):
            if threshold >= slice_start:
                continue

            if item.end - slice_start < duration:
                continue

            group_date = item.start.strftime(DATE_KEY_FORMAT)
            group = days.get(group_date)
            if group is None:
                group = days[group_date] = DateGroup(
                    weekday=item.start.strftime(WEEKDAY_FORMAT),
                )

            slice_id = f"{item_id}-{index}"
            group.add(TimeSlice(
                id=slice_id,
                start=slice_start,
                end=slice_start + duration,
                staff_id=item.staff.id,
                staff_name=item.staff.name,
                group_date=group_date,
                item=item,
                excluded=config.is_excluded(
                    item.program_id if item.program_id is not None else criteria.program_id
                ),
                highlighted=criteria.bid is not None and slice_id == criteria.bid,
            ))

    return days


def partition(
    start: datetime,
    end: datetime,
    step_minutes: int,
) -> Iterator[tuple[int, datetime]]:
    """
    Fixed-step partition of [start, end).

    Yields (index, slice_start) while slice_start < end. The last step may
    run past end; callers drop it by the capacity rule.
    """
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")

    step = timedelta(minutes=step_minutes)
    index = 0
    current = start
    while current < end:
        yield index, current
        index += 1
        current += step


def iter_slices(days: dict[str, DateGroup]) -> Iterator[TimeSlice]:
    """Walk grouped result in display order."""
    for group in days.values():
        yield from group.slices()


# ── Helpers ──────────────────────────────────────────────────────────────


def _is_visible_staff(
    item: BookableItem,
    criteria: SliceCriteria,
    config: SlicerConfig,
    can_view_test_trainer: bool,
) -> bool:
    if config.is_test_trainer(item.staff.id) and not can_view_test_trainer:
        return False

    if not criteria.all_trainers and item.staff.id != str(criteria.trainer):
        return False

    return True
