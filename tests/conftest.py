from __future__ import annotations

from datetime import datetime

import pytest

from pt_booking.services.slots import BookableItem, SliceCriteria, SlicerConfig, Staff


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list[tuple] = []

    def set(self, key, value, ex=None):
        self._ops.append((key, value, ex))
        return self

    def execute(self):
        self._redis.pipelines_executed += 1
        return [self._redis.set(key, value, ex=ex) for key, value, ex in self._ops]


class FakeRedis:
    """In-memory stand-in for the redis commands the store uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.pipelines_executed = 0

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def pipeline(self):
        return FakePipeline(self)

    def ping(self):
        return True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def config() -> SlicerConfig:
    return SlicerConfig(
        hide_minutes=0,
        booking_ttl_seconds=86400,
        test_trainer_id="999",
        hash_salt="test-salt",
    )


@pytest.fixture
def criteria() -> SliceCriteria:
    return SliceCriteria(
        location_id=1,
        program_id=2,
        session_type_id=3,
        trainer="all",
        date_range="3days",
        start_hour=9,
        end_hour=17,
    )


def make_item(
    start: datetime,
    end: datetime,
    duration: int = 30,
    item_id: str | None = "100",
    staff_id: str = "10",
    staff_name: str = "Jane Doe",
    program_id: int | None = 2,
) -> BookableItem:
    return BookableItem(
        id=item_id,
        staff=Staff(
            id=staff_id,
            name=staff_name,
            email=f"{staff_id}@example.com",
            mobile_phone="555-0100",
            is_male=False,
        ),
        start=start,
        end=end,
        session_type_id=3,
        default_duration=duration,
        program_id=program_id,
        location_id=1,
    )


def make_raw_item(
    start: str,
    end: str,
    duration: int = 30,
    item_id: str | None = "100",
    staff_id: int = 10,
    staff_name: str = "Jane Doe",
    program_id: int = 2,
) -> dict:
    """ScheduleItem as returned by the MINDBODY proxy."""
    raw = {
        "Staff": {
            "ID": staff_id,
            "Name": staff_name,
            "Email": f"{staff_id}@example.com",
            "MobilePhone": "555-0100",
            "isMale": False,
        },
        "StartDateTime": start,
        "EndDateTime": end,
        "SessionType": {"ID": 3, "DefaultTimeLength": duration},
        "Program": {"ID": program_id},
        "Location": {"ID": 1},
    }
    if item_id is not None:
        raw["ID"] = item_id
    return raw
