"""Season helpers: selectable years and event search."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..errors import CmpTrackerError
from ..schemas import Event
from ..services import event_service
from ..services.tba_client import TBAClient, get_tba_client
from .common import upstream_http_error

router = APIRouter()

YEARS_SHOWN = 5


@router.get("/years", response_model=List[int])
async def years():
    """Current season and the four before it."""
    current = date.today().year
    return [current - i for i in range(YEARS_SHOWN)]


@router.get("/search/events", response_model=List[Event])
async def search_events(
    year: Optional[int] = Query(None, ge=1992, le=2100),
    query: Optional[str] = Query(None, max_length=100),
    event_type: Optional[str] = Query(
        None, alias="eventType", description="regional, district, championship or all"
    ),
    client: TBAClient = Depends(get_tba_client),
):
    try:
        return await event_service.search_events(
            client, year or date.today().year, query=query, event_type=event_type
        )
    except CmpTrackerError as e:
        raise upstream_http_error(e, "Failed to search events")
