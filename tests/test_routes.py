import pytest
from fastapi.testclient import TestClient

from backend.cmp_tracker.main import app
from backend.cmp_tracker.services.tba_client import get_tba_client

from .factories import Status, event_json, team_json


@pytest.fixture
def api(client):
    app.dependency_overrides[get_tba_client] = lambda: client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(api):
    assert api.get("/api/health").json() == {"status": "ok"}


def test_years_lists_five_seasons(api):
    years = api.get("/api/years").json()
    assert len(years) == 5
    assert years == sorted(years, reverse=True)


def test_status_reports_upstream_reachability(api, fake_tba):
    fake_tba.add("/status", {"current_season": 2025})
    assert api.get("/api/status").json() == {"tba": True}


def test_season_events(api, fake_tba):
    fake_tba.add("/events/2025", [
        event_json("2025casj", 0, "Silicon Valley Regional", start_date="2025-03-20"),
        event_json("2025cafr", 0, "Central Valley Regional", start_date="2025-03-06"),
    ])

    resp = api.get("/api/events", params={"year": 2025})

    assert resp.status_code == 200
    assert [e["key"] for e in resp.json()] == ["2025cafr", "2025casj"]


def test_search_events_by_type(api, fake_tba):
    fake_tba.add("/events/2025", [
        event_json("2025casj", 0, "Silicon Valley Regional"),
        event_json("2025new", 3, "Newton Division"),
    ])

    resp = api.get("/api/search/events", params={"year": 2025, "eventType": "championship"})

    assert [e["key"] for e in resp.json()] == ["2025new"]


def test_event_teams_with_championship_status(api, fake_tba):
    fake_tba.add("/event/2025casj", event_json("2025casj", 0, "Silicon Valley Regional"))
    fake_tba.add("/events/2025", [event_json("2025casj", 0)])
    fake_tba.add("/event/2025casj/teams", [team_json(254, rookie_year=1999)])
    fake_tba.add("/event/2025casj/rankings", {"rankings": [{"team_key": "frc254", "rank": 1}]})
    fake_tba.add("/event/2025casj/teams/statuses", {})

    resp = api.get("/api/events/2025casj/teams")

    assert resp.status_code == 200
    [row] = resp.json()
    assert row["team"]["key"] == "frc254"
    assert row["isQualified"] is False
    assert row["waitlistPosition"] == 1
    assert row["qualificationStatus"] == "WAITLIST"
    assert row["rank"] == 1


def test_upstream_not_found_passes_through(api):
    resp = api.get("/api/events/2025nope")

    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "Failed to fetch event details"
    assert resp.json()["detail"]["upstreamStatus"] == 404


@pytest.mark.parametrize("code, expected", [(429, 429), (500, 502)])
def test_upstream_errors_map_to_http_status(api, fake_tba, code, expected):
    fake_tba.add("/event/2025casj", Status(code))
    assert api.get("/api/events/2025casj").status_code == expected


def test_missing_api_key_is_a_server_error(make_client):
    app.dependency_overrides[get_tba_client] = lambda: make_client(api_key="")
    try:
        with TestClient(app) as c:
            resp = c.get("/api/team/254/achievements/2025")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert "TBA_API_KEY" in resp.json()["detail"]["message"]


def test_malformed_event_key_is_rejected(api, fake_tba):
    assert api.get("/api/events/not-a-key/teams").status_code == 422
    assert fake_tba.calls == []


def test_clear_cache_forces_refetch(api, fake_tba):
    fake_tba.add("/event/2025casj", event_json("2025casj", 0, "Silicon Valley Regional"))
    api.get("/api/events/2025casj")
    api.get("/api/events/2025casj")
    assert fake_tba.count("/event/2025casj") == 1

    resp = api.get("/api/events/2025casj/clear-cache")
    assert resp.json()["removed"] == 1

    api.get("/api/events/2025casj")
    assert fake_tba.count("/event/2025casj") == 2


def test_status_check_counts_against_rate_limit(make_client, fake_tba, clock):
    fake_tba.add("/status", {"current_season": 2025})
    limited = make_client(rate_limit=1)
    app.dependency_overrides[get_tba_client] = lambda: limited
    try:
        with TestClient(app) as c:
            results = [c.get("/api/status").json() for _ in range(3)]
    finally:
        app.dependency_overrides.clear()

    assert results == [{"tba": True}] * 3
    assert fake_tba.count("/status") == 3
    assert clock.sleeps == [61.0, 61.0]
