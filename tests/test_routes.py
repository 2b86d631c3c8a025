from __future__ import annotations

from datetime import date, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_raw_item
from pt_booking.main import app
from pt_booking.routers import pt
from pt_booking.services.searcher import ResultsSearcher
from pt_booking.services.slots import BookingRedisStore
from pt_booking.utils.mindbody import MindbodyClient

TOMORROW = date.today() + timedelta(days=1)


def iso(hour: int, minute: int = 0) -> str:
    return f"{TOMORROW.isoformat()}T{hour:02d}:{minute:02d}:00"


SEARCH = {
    "location": "1",
    "p": "2",
    "s": "3",
    "trainer": "all",
    "dr": "3days",
    "st": "9",
    "et": "17",
}


@pytest.fixture
def upstream():
    state = {
        "payload": {"GetBookableItemsResult": {"ScheduleItems": None}},
        "status": 200,
        "paths": {},
    }

    def handler(request):
        payload = state["paths"].get(request.url.path, state["payload"])
        return httpx.Response(state["status"], json=payload)

    state["transport"] = httpx.MockTransport(handler)
    return state


@pytest.fixture
def client(upstream, fake_redis, config):
    mindbody = MindbodyClient(
        base_url="http://proxy.test",
        site_id="-99",
        username="user",
        password="secret",
        transport=upstream["transport"],
    )
    searcher = ResultsSearcher(mindbody, BookingRedisStore(fake_redis, config), config)

    app.dependency_overrides[pt.get_searcher] = lambda: searcher
    app.dependency_overrides[pt.can_view_test_trainer] = lambda: False
    yield TestClient(app)
    app.dependency_overrides.clear()


def schedule(*items) -> dict:
    return {"GetBookableItemsResult": {"ScheduleItems": {"ScheduleItem": list(items)}}}


SITE_LISTINGS = {
    "/SiteService/GetLocations": {
        "GetLocationsResult": {"Locations": {"Location": {"ID": 1, "Name": "Downtown"}}},
    },
    "/SiteService/GetPrograms": {
        "GetProgramsResult": {"Programs": {"Program": [{"ID": 2, "Name": "Personal Training"}]}},
    },
    "/SiteService/GetSessionTypes": {
        "GetSessionTypesResult": {"SessionTypes": {"SessionType": [
            {"ID": 3, "Name": "PT 30 min", "DefaultTimeLength": 30},
        ]}},
    },
}


def test_results_grouped_with_booking_links(client, upstream):
    upstream["payload"] = schedule(
        make_raw_item(iso(9), iso(10, 30)),
        make_raw_item(iso(11), iso(11, 30), item_id="200", program_id=4),
    )

    resp = client.get("/pt/results", params=SEARCH)

    assert resp.status_code == 200
    body = resp.json()
    assert body["start_time"] == "9 am"
    assert body["end_time"] == "5 pm"
    assert body["back_query"]["step"] == "4"
    assert len(body["days"]) == 1
    day = body["days"][0]
    assert day["date"] == TOMORROW.strftime("%B %d, %Y")
    trainer = day["trainers"][0]
    assert trainer["name"] == "Jane Doe"
    ids = [s["id"] for s in trainer["slices"]]
    assert ids == ["100-0", "100-1", "100-2", "200-0"]
    assert trainer["slices"][0]["label"] == "09:00 am - 09:30 am"
    assert trainer["slices"][0]["book_query"]["bid"] == "100-0"
    assert trainer["slices"][3]["excluded"] is True
    assert trainer["slices"][3]["book_query"] is None


def test_results_name_location_program_and_session_type(client, upstream):
    upstream["paths"].update(SITE_LISTINGS)

    body = client.get("/pt/results", params=SEARCH).json()

    assert body["location_name"] == "Downtown"
    assert body["program_name"] == "Personal Training"
    assert body["session_type_name"] == "PT 30 min"


def test_results_missing_criteria_is_400(client):
    params = dict(SEARCH)
    del params["s"]

    resp = client.get("/pt/results", params=params)

    assert resp.status_code == 400
    assert "couldn't complete your search" in resp.json()["detail"]


def test_results_upstream_failure_is_503(client, upstream):
    upstream["status"] = 500

    resp = client.get("/pt/results", params=SEARCH)

    assert resp.status_code == 503


def test_book_returns_stored_data_for_signed_link(client, upstream):
    upstream["payload"] = schedule(make_raw_item(iso(9), iso(10)))
    body = client.get("/pt/results", params=SEARCH).json()
    link = body["days"][0]["trainers"][0]["slices"][1]["book_query"]

    resp = client.get("/pt/book", params=link)

    assert resp.status_code == 200
    data = resp.json()
    assert data["bid"] == "100-1"
    assert data["trainer_name"] == "Jane Doe"
    assert data["trainer_email"] == "10@example.com"


def test_book_tampered_link_is_403(client, upstream):
    upstream["payload"] = schedule(make_raw_item(iso(9), iso(10)))
    body = client.get("/pt/results", params=SEARCH).json()
    link = dict(body["days"][0]["trainers"][0]["slices"][0]["book_query"])
    link["trainer"] = "999"

    resp = client.get("/pt/book", params=link)

    assert resp.status_code == 403


def test_book_expired_data_is_404(client, upstream, fake_redis):
    upstream["payload"] = schedule(make_raw_item(iso(9), iso(10)))
    body = client.get("/pt/results", params=SEARCH).json()
    link = body["days"][0]["trainers"][0]["slices"][0]["book_query"]
    fake_redis.data.clear()

    resp = client.get("/pt/book", params=link)

    assert resp.status_code == 404


def test_trainers(client, upstream):
    upstream["payload"] = schedule(
        make_raw_item(iso(9), iso(10), staff_id=10),
        make_raw_item(iso(9), iso(10), staff_id=999, staff_name="API Test"),
    )

    resp = client.get("/pt/trainers", params={"location": "1", "s": "3"})

    assert resp.status_code == 200
    assert resp.json() == [
        {"id": "all", "name": "All"},
        {"id": "10", "name": "Jane Doe"},
    ]


def test_time_options(client):
    resp = client.get("/pt/time-options")

    assert resp.status_code == 200
    options = resp.json()
    assert options[0] == {"hour": 4, "label": "4 am"}
    assert options[-1] == {"hour": 22, "label": "10 pm"}


def test_book_checks_token_once(client, upstream, monkeypatch):
    upstream["payload"] = schedule(make_raw_item(iso(9), iso(10)))
    body = client.get("/pt/results", params=SEARCH).json()
    link = body["days"][0]["trainers"][0]["slices"][0]["book_query"]
    checks = []
    original = pt.ResultsSearcher.validate_link

    def counting(self, query):
        checks.append(query)
        return original(self, query)

    monkeypatch.setattr(pt.ResultsSearcher, "validate_link", counting)

    resp = client.get("/pt/book", params=link)

    assert resp.status_code == 200
    assert len(checks) == 1


def test_site_listings(client, upstream):
    upstream["paths"].update(SITE_LISTINGS)

    assert client.get("/pt/locations").json() == [{"id": 1, "name": "Downtown"}]
    assert client.get("/pt/programs").json() == [{"id": 2, "name": "Personal Training"}]
    resp = client.get("/pt/session-types", params={"p": "2"})
    assert resp.status_code == 200
    assert resp.json() == [{"id": 3, "name": "PT 30 min"}]


def test_session_types_requires_program(client):
    resp = client.get("/pt/session-types")

    assert resp.status_code == 422


def test_listing_upstream_failure_is_503(client, upstream):
    upstream["status"] = 502

    assert client.get("/pt/locations").status_code == 503
