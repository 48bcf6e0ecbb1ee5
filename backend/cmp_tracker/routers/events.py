"""Event endpoints: season list, event detail, championship status per team."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from ..errors import CmpTrackerError
from ..schemas import Event, TeamChampionshipStatus
from ..services import championship_service, event_service
from ..services.tba_client import TBAClient, get_tba_client
from .common import upstream_http_error

router = APIRouter()

EVENT_KEY_PATTERN = r"^\d{4}[a-z0-9]+$"


@router.get("", response_model=List[Event])
async def season_events(
    year: Optional[int] = Query(None, ge=1992, le=2100),
    client: TBAClient = Depends(get_tba_client),
):
    try:
        return await event_service.list_season_events(client, year or date.today().year)
    except CmpTrackerError as e:
        raise upstream_http_error(e, "Failed to fetch events")


@router.get("/{event_key}", response_model=Event)
async def event_detail(
    event_key: str = Path(..., pattern=EVENT_KEY_PATTERN),
    client: TBAClient = Depends(get_tba_client),
):
    try:
        return await client.get_event(event_key)
    except CmpTrackerError as e:
        raise upstream_http_error(e, "Failed to fetch event details")


@router.get("/{event_key}/teams", response_model=List[TeamChampionshipStatus])
async def event_teams_with_status(
    event_key: str = Path(..., pattern=EVENT_KEY_PATTERN),
    client: TBAClient = Depends(get_tba_client),
):
    """Every team at the event with its championship qualification status.

    ``waitlistPosition`` is a heuristic estimate, not data from TBA.
    """
    try:
        # The season comes from the event record, not the key prefix
        event = await client.get_event(event_key)
        year = event.year or int(event_key[:4])
        return await championship_service.get_team_championship_status(client, event_key, year)
    except CmpTrackerError as e:
        raise upstream_http_error(e, "Failed to fetch teams with championship status")


@router.get("/{event_key}/clear-cache")
async def clear_cache(
    event_key: str = Path(..., pattern=EVENT_KEY_PATTERN),
    client: TBAClient = Depends(get_tba_client),
):
    """Forget cached data for one event so the next request refetches it."""
    removed = client.clear_event_cache(event_key)
    return {"status": "cache cleared", "event_key": event_key, "removed": removed}
