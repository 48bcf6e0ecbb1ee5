"""Championship qualification resolver.

Given a (usually regional or district) event, decide for every team on its
roster whether it is qualified for the FIRST Championship, which division it
plays in, and how it is doing there, by cross-referencing the season's
championship division and finals events.

Per team the outcome is one of: qualified via a division, qualified via a
finals event, or not qualified (with a waitlist estimate). The first division
hit wins; finals are scanned independently because alliance data can appear
on either side first.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Iterable, Optional, TypeVar

from ..schemas import (
    Award,
    Event,
    EventRankings,
    QualificationPath,
    Team,
    TeamChampionshipStatus,
    TeamEventStatus,
    WinLossRecord,
)
from .event_service import classify_events, division_display_name
from .tba_client import TBAClient

logger = logging.getLogger(__name__)

# Waitlist heuristic knobs
WAITLIST_TOP_RANK = 8
YOUNG_TEAM_SEASONS = 3

T = TypeVar("T")


@dataclass(frozen=True)
class TargetRanking:
    """A team's standing at the queried event (qual + playoff record)."""

    rank: Optional[int]
    record: Optional[WinLossRecord]
    total_teams: int


@dataclass
class ChampionshipSnapshot:
    """Season championship events plus their batch team-status maps."""

    finals: list[Event]
    divisions: list[Event]
    finals_statuses: dict[str, dict[str, TeamEventStatus]] = field(default_factory=dict)
    division_statuses: dict[str, dict[str, TeamEventStatus]] = field(default_factory=dict)
    division_awards: dict[str, list[Award]] = field(default_factory=dict)

    def championship_for(self, division: Event) -> Optional[Event]:
        """The finals event a division feeds into (first finals if unlinked)."""
        for ev in self.finals:
            if ev.key == division.parent_event_key or division.key in ev.division_keys:
                return ev
        return self.finals[0] if self.finals else None


async def _safe(aw: Awaitable[T], default: T, what: str) -> T:
    """Await an auxiliary fetch; log and fall back to *default* if it fails."""
    try:
        return await aw
    except Exception as exc:
        logger.warning("Error fetching %s: %s. Continuing without it.", what, exc)
        return default


# ── Fetching ────────────────────────────────────────────────


def build_rank_map(
    rankings: EventRankings, statuses: dict[str, TeamEventStatus]
) -> dict[str, TargetRanking]:
    """team_key -> rank, qual+playoff record and field size at the queried event."""
    total = len(rankings.rankings)
    rank_map: dict[str, TargetRanking] = {}
    for entry in rankings.rankings:
        status = statuses.get(entry.team_key)
        playoff = status.playoff_record if status else None
        rank_map[entry.team_key] = TargetRanking(
            rank=entry.rank,
            record=WinLossRecord.combine(entry.record, playoff),
            total_teams=total,
        )
    return rank_map


async def fetch_championship_snapshot(
    client: TBAClient, season_events: Iterable[Event]
) -> ChampionshipSnapshot:
    """Batch-fetch one status map per division/finals event (plus division awards).

    One request per championship event, never one per team. A failing event
    contributes an empty map and the rest of the snapshot is unaffected.
    """
    finals, divisions = classify_events(season_events)
    logger.info(
        "Found %d championship events and %d division events",
        len(finals), len(divisions),
    )

    def statuses(ev: Event, kind: str):
        return _safe(
            client.get_event_team_statuses(ev.key), {}, f"team statuses for {kind} {ev.key}"
        )

    finals_maps, division_maps, award_lists = await asyncio.gather(
        asyncio.gather(*(statuses(ev, "championship") for ev in finals)),
        asyncio.gather(*(statuses(ev, "division") for ev in divisions)),
        asyncio.gather(*(
            _safe(client.get_event_awards(ev.key), [], f"awards for division {ev.key}")
            for ev in divisions
        )),
    )

    snapshot = ChampionshipSnapshot(
        finals=finals,
        divisions=divisions,
        finals_statuses={ev.key: m for ev, m in zip(finals, finals_maps)},
        division_statuses={ev.key: m for ev, m in zip(divisions, division_maps)},
        division_awards={ev.key: a for ev, a in zip(divisions, award_lists)},
    )
    for ev in divisions:
        division_map = snapshot.division_statuses[ev.key]
        count = len(division_map)
        if count == 0:
            logger.warning("DATA GAP: no team statuses for division %s (%s)", ev.key, ev.name)
        elif not any(s.qual and s.qual.ranking for s in division_map.values()):
            logger.warning(
                "DATA GAP: no rankings for division %s (%s); %d teams listed without rank",
                ev.key, ev.name, count,
            )
        else:
            logger.debug("Found %d teams in division %s (%s)", count, ev.name, ev.key)
    return snapshot


# ── Per-team resolution ─────────────────────────────────────


def estimate_waitlist_position(
    team: Team, ranking: Optional[TargetRanking], today: date
) -> int:
    """Guess whether an unqualified team is likely on the championship waitlist.

    TBA does not expose real waitlist positions. Returns 1 ("likely
    waitlisted") for young programs (rookie year within the last
    ``YOUNG_TEAM_SEASONS`` seasons) or teams ranked in the top
    ``WAITLIST_TOP_RANK`` at the queried event, otherwise 0. An estimate
    only; callers must not present it as authoritative.
    """
    if team.rookie_year and today.year - team.rookie_year < YOUNG_TEAM_SEASONS:
        return 1
    if ranking and ranking.rank is not None and ranking.rank <= WAITLIST_TOP_RANK:
        return 1
    return 0


def _first_hit(
    events: list[Event], status_maps: dict[str, dict[str, TeamEventStatus]], team_key: str
) -> tuple[Optional[Event], Optional[TeamEventStatus]]:
    for ev in events:
        status = status_maps.get(ev.key, {}).get(team_key)
        if status is not None:
            return ev, status
    return None, None


def _record_str(record: Optional[WinLossRecord]) -> Optional[str]:
    return str(record) if record is not None else None


def resolve_team(
    team: Team,
    snapshot: ChampionshipSnapshot,
    ranking: Optional[TargetRanking] = None,
    *,
    today: Optional[date] = None,
) -> TeamChampionshipStatus:
    """Pure resolution of one team against prefetched championship data."""
    tk = team.key
    qualified_via: Optional[QualificationPath] = None
    championship: Optional[Event] = None

    div_event, div_status = _first_hit(snapshot.divisions, snapshot.division_statuses, tk)
    if div_event is not None:
        qualified_via = QualificationPath.DIVISION
        championship = snapshot.championship_for(div_event)

    fin_event, fin_status = _first_hit(snapshot.finals, snapshot.finals_statuses, tk)
    if fin_event is not None:
        qualified_via = qualified_via or QualificationPath.FINALS
        championship = championship or fin_event

    is_qualified = qualified_via is not None

    # Division performance
    division = division_key = ""
    cmp_rank: Optional[int] = None
    cmp_record: Optional[str] = None
    division_total: Optional[int] = None
    awards: tuple[Award, ...] = ()
    if div_event is not None:
        division = division_display_name(div_event.key, div_event.name)
        division_key = div_event.key
        qual = div_status.qual
        if qual and qual.ranking:
            cmp_rank = qual.ranking.rank
            cmp_record = _record_str(div_status.combined_record)
            division_total = qual.num_teams
        awards = tuple(a for a in snapshot.division_awards.get(division_key, []) if a.has_recipient(tk))
    elif is_qualified:
        logger.warning(
            "DATA GAP: %s is qualified (%s) but no division was found; division fields left empty",
            tk, championship.key if championship else "?",
        )

    # Einstein / finals playoff, only once the team is on an alliance
    final_key = ""
    final_rank: Optional[str] = None
    final_record: Optional[str] = None
    if fin_status is not None and fin_status.alliance is not None:
        final_key = fin_event.key
        final_rank = fin_status.playoff.status if fin_status.playoff else None
        final_record = _record_str(fin_status.combined_record)

    # Finals strings are the more current state; they win when present
    overall_str = div_status.overall_status_str if div_status else None
    alliance_str = div_status.alliance_status_str if div_status else None
    if fin_status is not None:
        overall_str = fin_status.overall_status_str or overall_str
        alliance_str = fin_status.alliance_status_str or alliance_str

    waitlist: Optional[int] = None
    if not is_qualified:
        waitlist = estimate_waitlist_position(team, ranking, today or date.today())

    return TeamChampionshipStatus(
        team=team,
        is_qualified=is_qualified,
        qualified_via=qualified_via,
        waitlist_position=waitlist,
        championship_location=championship.display_location if championship else "",
        championship_event_key=championship.key if championship else "",
        division=division,
        division_event_key=division_key,
        championship_rank=cmp_rank,
        championship_record=cmp_record,
        division_total_teams=division_total,
        championship_awards=awards,
        final_event_key=final_key,
        final_rank=final_rank,
        final_record=final_record,
        rank=ranking.rank if ranking else None,
        record=_record_str(ranking.record) if ranking else None,
        total_teams=ranking.total_teams if ranking else None,
        overall_status_str=overall_str,
        alliance_status_str=alliance_str,
    )


# ── Entry point ─────────────────────────────────────────────


async def get_team_championship_status(
    client: TBAClient,
    event_key: str,
    year: int,
    *,
    today: Optional[date] = None,
) -> list[TeamChampionshipStatus]:
    """Championship status for every team at *event_key*, in roster order.

    Failures fetching the season event list, the roster or the rankings of
    *event_key* propagate. Failures on any single championship event are
    logged and treated as "no data" for that event.
    """
    logger.info("Getting championship status for teams at event %s", event_key)

    season_events, teams, rankings = await asyncio.gather(
        client.get_events_by_year(year),
        client.get_event_teams(event_key),
        client.get_event_rankings(event_key),
    )
    logger.info("Processing %d teams from event %s", len(teams), event_key)

    target_statuses, snapshot = await asyncio.gather(
        _safe(client.get_event_team_statuses(event_key), {}, f"playoff records for {event_key}"),
        fetch_championship_snapshot(client, season_events),
    )
    rank_map = build_rank_map(rankings, target_statuses)

    today = today or date.today()
    results = [resolve_team(t, snapshot, rank_map.get(t.key), today=today) for t in teams]

    logger.info(
        "Processed %d team statuses for event %s (%d qualified)",
        len(results), event_key, sum(1 for r in results if r.is_qualified),
    )
    return results
