"""Event business logic: championship classification, division names, season listing."""
from __future__ import annotations

from datetime import date
from enum import IntEnum
from typing import Iterable, NamedTuple, Optional

from ..schemas import Event
from .tba_client import TBAClient


class EventType(IntEnum):
    """TBA ``event_type`` codes, as published in TBA's EventType constants."""

    UNLABLED = -1
    REGIONAL = 0
    DISTRICT = 1
    DISTRICT_CMP = 2
    CMP_DIVISION = 3
    CMP_FINALS = 4
    DISTRICT_CMP_DIVISION = 5
    FOC = 6
    REMOTE = 7
    OFFSEASON = 99
    PRESEASON = 100


# Which codes the resolver treats as championship divisions / finals.
# Pinned by tests; check TBA's API docs before changing either one.
DIVISION_EVENT_TYPE = EventType.CMP_DIVISION
FINALS_EVENT_TYPE = EventType.CMP_FINALS

EVENT_TYPE_LABELS = {
    EventType.REGIONAL: "Regional",
    EventType.DISTRICT: "District",
    EventType.DISTRICT_CMP: "District Championship",
    EventType.CMP_DIVISION: "FIRST Championship Division",
    EventType.CMP_FINALS: "FIRST Championship (Einstein)",
    EventType.DISTRICT_CMP_DIVISION: "District Championship Division",
    EventType.FOC: "Festival of Champions",
    EventType.REMOTE: "Remote",
    EventType.OFFSEASON: "Offseason",
    EventType.PRESEASON: "Preseason",
}

# Championship division short codes (event key minus the year) -> display name.
# Content lookup only; extend as FIRST renames divisions.
DIVISION_NAMES = {
    "arc": "Archimedes",
    "car": "Carson",
    "cars": "Carson",
    "carv": "Carver",
    "cur": "Curie",
    "dal": "Daly",
    "dar": "Darwin",
    "gal": "Galileo",
    "hop": "Hopper",
    "joh": "Johnson",
    "mil": "Milstein",
    "new": "Newton",
    "roe": "Roebling",
    "tes": "Tesla",
    "tur": "Turing",
}

# eventType query values accepted by search_events
_SEARCH_TYPES = {
    "regional": {EventType.REGIONAL},
    "district": {EventType.DISTRICT, EventType.DISTRICT_CMP, EventType.DISTRICT_CMP_DIVISION},
    "championship": {EventType.CMP_DIVISION, EventType.CMP_FINALS},
}

_FAR_FUTURE = date(2099, 1, 1)


class ChampionshipEvents(NamedTuple):
    finals: list[Event]
    divisions: list[Event]


def classify_events(events: Iterable[Event]) -> ChampionshipEvents:
    """Split a season's events into championship finals and championship divisions.

    Everything else (regionals, districts, offseason...) is dropped.
    """
    finals: list[Event] = []
    divisions: list[Event] = []
    for ev in events:
        if ev.event_type == FINALS_EVENT_TYPE:
            finals.append(ev)
        elif ev.event_type == DIVISION_EVENT_TYPE:
            divisions.append(ev)
    return ChampionshipEvents(finals=finals, divisions=divisions)


def division_code(event_key: str) -> str:
    """``"2025new"`` -> ``"new"``."""
    return event_key[4:] if event_key[:4].isdigit() else event_key


def division_display_name(event_key: str, event_name: str = "") -> str:
    """Human-readable division name, falling back to the event's own name."""
    known = DIVISION_NAMES.get(division_code(event_key).lower())
    if known:
        return known
    return event_name or event_key


def event_type_label(event: Event) -> str:
    try:
        return EVENT_TYPE_LABELS[EventType(event.event_type)]
    except ValueError:
        return event.event_type_string or "Other"


# ── Season listing ──────────────────────────────────────────


async def list_season_events(client: TBAClient, year: int) -> list[Event]:
    """Events for *year* that have a name and start date, by start date then name."""
    events = await client.get_events_by_year(year)
    listed = [ev for ev in events if ev.name and ev.start_date]
    listed.sort(key=lambda ev: (ev.start_date, ev.name.lower()))
    return listed


def filter_events(
    events: Iterable[Event],
    query: Optional[str] = None,
    event_type: Optional[str] = None,
) -> list[Event]:
    """Case-insensitive text match on name/short name/city/state, plus a type filter.

    Unknown *event_type* values (and ``"all"``) leave the list unfiltered by type.
    """
    result = list(events)

    if query:
        q = query.lower()
        result = [
            ev for ev in result
            if any(
                q in (field or "").lower()
                for field in (ev.name, ev.short_name, ev.city, ev.state_prov)
            )
        ]

    wanted = _SEARCH_TYPES.get((event_type or "").lower())
    if wanted:
        result = [ev for ev in result if ev.event_type in wanted]

    result.sort(key=lambda ev: ev.start_date or _FAR_FUTURE)
    return result


async def search_events(
    client: TBAClient,
    year: int,
    query: Optional[str] = None,
    event_type: Optional[str] = None,
) -> list[Event]:
    return filter_events(await client.get_events_by_year(year), query, event_type)
