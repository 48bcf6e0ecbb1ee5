"""Team lookup endpoints: season storyboard."""
from fastapi import APIRouter, Depends, Path

from ..errors import CmpTrackerError
from ..schemas import TeamAchievements
from ..services import team_service
from ..services.tba_client import TBAClient, get_tba_client
from .common import upstream_http_error

router = APIRouter()


@router.get("/{team_number}/achievements/{year}", response_model=TeamAchievements)
async def team_achievements(
    team_number: int = Path(..., ge=1, le=99999),
    year: int = Path(..., ge=1992, le=2100),
    client: TBAClient = Depends(get_tba_client),
):
    try:
        return await team_service.get_team_achievements(client, team_number, year)
    except CmpTrackerError as e:
        raise upstream_http_error(e, "Failed to fetch team achievements")
