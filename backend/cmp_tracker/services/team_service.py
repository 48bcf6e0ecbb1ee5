"""Team storyboard: per-event performance, awards and status for one season."""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Optional

from ..errors import UpstreamError
from ..schemas import (
    Event,
    EventAchievement,
    EventBrief,
    EventPerformance,
    EventRankings,
    TeamAchievements,
    TeamEventStatus,
    WinLossRecord,
)
from .event_service import event_type_label
from .tba_client import TBAClient

logger = logging.getLogger(__name__)

_FAR_FUTURE = date(2099, 1, 1)


def _brief(ev: Event) -> EventBrief:
    return EventBrief(
        key=ev.key,
        name=ev.name,
        short_name=ev.short_name,
        start_date=ev.start_date,
        end_date=ev.end_date,
        event_type=ev.event_type,
        event_type_string=ev.event_type_string or event_type_label(ev),
        city=ev.city,
        state_prov=ev.state_prov,
        country=ev.country,
    )


def _performance(
    team_key: str, rankings: EventRankings, status: Optional[TeamEventStatus]
) -> Optional[EventPerformance]:
    """Rank plus qual+playoff record, or None if the team is not ranked (yet)."""
    entry = next((r for r in rankings.rankings if r.team_key == team_key), None)
    if entry is None:
        return None
    playoff = status.playoff_record if status else None
    record = WinLossRecord.combine(entry.record, playoff)
    return EventPerformance(
        rank=entry.rank,
        total_teams=len(rankings.rankings),
        record=str(record) if record else None,
    )


async def _event_achievement(client: TBAClient, team_key: str, ev: Event) -> EventAchievement:
    brief = _brief(ev)
    try:
        rankings, awards, status = await asyncio.gather(
            client.get_event_rankings(ev.key),
            client.get_team_event_awards(team_key, ev.key),
            client.get_team_event_status(team_key, ev.key),
        )
    except UpstreamError as exc:
        logger.warning("Error fetching %s results at %s: %s", team_key, ev.key, exc)
        return EventAchievement(event=brief, error=f"Failed to load event data: {exc}")

    return EventAchievement(
        event=brief,
        performance=_performance(team_key, rankings, status),
        status=status,
        awards=awards,
        alliance_status_html=(status.alliance_status_str if status else None) or "",
        overall_status_html=(status.overall_status_str if status else None) or "",
    )


async def get_team_achievements(client: TBAClient, team_number: int, year: int) -> TeamAchievements:
    """Everything the storyboard shows for one team and season.

    Team info and the team's event list must load; after that each event is
    fetched independently and a failing event becomes an entry with ``error``
    set instead of failing the whole season.
    """
    team_key = f"frc{team_number}"
    team, events = await asyncio.gather(
        client.get_team(team_key),
        client.get_team_events(team_key, year),
    )
    events = sorted(events, key=lambda ev: (ev.start_date or _FAR_FUTURE, ev.key))

    achievements = await asyncio.gather(
        *(_event_achievement(client, team_key, ev) for ev in events)
    )
    failed = sum(1 for a in achievements if a.error)
    if failed:
        logger.warning("%d of %d events for %s in %d loaded with errors", failed, len(events), team_key, year)

    return TeamAchievements(
        team_key=team_key,
        team_number=team.team_number,
        team_name=team.name,
        team_nickname=team.nickname,
        rookie_year=team.rookie_year,
        year=year,
        achievements=list(achievements),
    )
