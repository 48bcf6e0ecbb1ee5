import pytest

from backend.cmp_tracker.schemas import Event
from backend.cmp_tracker.services import event_service
from backend.cmp_tracker.services.event_service import (
    DIVISION_EVENT_TYPE,
    FINALS_EVENT_TYPE,
    classify_events,
    division_display_name,
    event_type_label,
    filter_events,
)

from .factories import event_json


def _ev(key, event_type, **kw):
    return Event.model_validate(event_json(key, event_type, **kw))


def test_championship_type_codes_are_pinned():
    # TBA EventType: CMP_DIVISION = 3, CMP_FINALS = 4
    assert DIVISION_EVENT_TYPE == 3
    assert FINALS_EVENT_TYPE == 4


def test_classify_events_keeps_only_championship_events():
    events = [
        _ev("2025casj", 0),
        _ev("2025new", 3),
        _ev("2025cmptx", 4),
        _ev("2025gal", 3),
        _ev("2025micmp", 2),
    ]
    finals, divisions = classify_events(events)
    assert [e.key for e in finals] == ["2025cmptx"]
    assert [e.key for e in divisions] == ["2025new", "2025gal"]


@pytest.mark.parametrize(
    "key, name, expected",
    [
        ("2025new", "Newton Division", "Newton"),
        ("2025GAL", "", "Galileo"),
        ("2025xyz", "Mystery Division", "Mystery Division"),
        ("2025xyz", "", "2025xyz"),
    ],
)
def test_division_display_name(key, name, expected):
    assert division_display_name(key, name) == expected


def test_event_type_label_falls_back_to_upstream_string():
    assert event_type_label(_ev("2025casj", 0)) == "Regional"
    assert event_type_label(_ev("2025odd", 42, event_type_string="Oddball")) == "Oddball"


def test_filter_events_by_text_and_type():
    events = [
        _ev("2025casj", 0, name="Silicon Valley Regional", city="San Jose", start_date="2025-03-20"),
        _ev("2025cada", 0, name="Sacramento Regional", city="Davis", start_date="2025-03-06"),
        _ev("2025new", 3, name="Newton Division", city="Houston", start_date="2025-04-16"),
        _ev("2025txhou", 1, name="FIT District Houston Event", city="Houston", start_date="2025-03-13"),
    ]

    assert [e.key for e in filter_events(events, query="houston")] == ["2025txhou", "2025new"]
    assert [e.key for e in filter_events(events, event_type="regional")] == ["2025cada", "2025casj"]
    assert [e.key for e in filter_events(events, query="houston", event_type="championship")] == ["2025new"]
    assert len(filter_events(events, event_type="all")) == 4


@pytest.mark.asyncio
async def test_list_season_events_drops_incomplete_and_sorts(client, fake_tba):
    fake_tba.add("/events/2025", [
        event_json("2025b", 0, name="beta", start_date="2025-03-01"),
        event_json("2025a", 0, name="Alpha", start_date="2025-03-01"),
        event_json("2025z", 0, name="Early", start_date="2025-02-01"),
        event_json("2025nodate", 0, name="No Date", start_date=None),
    ])

    events = await event_service.list_season_events(client, 2025)

    assert [e.key for e in events] == ["2025z", "2025a", "2025b"]
