"""Builders for TBA-shaped JSON payloads and a fake TBA server."""
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import httpx

API_PREFIX = "/api/v3"


class Status:
    """Route payload meaning "answer with this HTTP status"."""

    def __init__(self, code: int) -> None:
        self.code = code


class FakeClock:
    """Monotonic clock + sleep that only advance when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeTBA:
    """Endpoint -> payload table served through httpx.MockTransport."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[str] = []
        self.call_times: list[float] = []
        self.headers: list[httpx.Headers] = []
        self.clock = clock

    def add(self, endpoint: str, payload: Any) -> "FakeTBA":
        self.routes[endpoint] = payload
        return self

    def count(self, endpoint: str) -> int:
        return self.calls.count(endpoint)

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path[len(API_PREFIX):]
        self.calls.append(endpoint)
        self.call_times.append(self.clock() if self.clock else 0.0)
        self.headers.append(request.headers)

        if endpoint not in self.routes:
            return httpx.Response(404, json={"Errors": [{"key": f"{endpoint} does not exist"}]})
        payload = self.routes[endpoint]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, Status):
            return httpx.Response(payload.code, json={"Error": "nope"})
        return httpx.Response(
            200, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"}
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# ── TBA JSON builders ───────────────────────────────────────


def event_json(key: str, event_type: int, name: str = "", city: Optional[str] = None,
               start_date: Optional[str] = "2025-03-01", **extra: Any) -> dict:
    return {
        "key": key,
        "name": name or f"Event {key}",
        "short_name": extra.pop("short_name", None),
        "event_type": event_type,
        "year": int(key[:4]),
        "start_date": start_date,
        "end_date": start_date,
        "city": city,
        "state_prov": extra.pop("state_prov", None),
        "country": "USA",
        **extra,
    }


def team_json(number: int, rookie_year: Optional[int] = 2005, nickname: str = "") -> dict:
    return {
        "key": f"frc{number}",
        "team_number": number,
        "name": f"Sponsors of {number}",
        "nickname": nickname or f"Team {number}",
        "city": "San Jose",
        "state_prov": "CA",
        "country": "USA",
        "rookie_year": rookie_year,
    }


def wlt(wins: int, losses: int, ties: int = 0) -> dict:
    return {"wins": wins, "losses": losses, "ties": ties}


def ranking_json(team_key: str, rank: int, record: Optional[dict] = None) -> dict:
    return {"team_key": team_key, "rank": rank, "record": record, "matches_played": 10}


def status_json(
    rank: Optional[int] = None,
    record: Optional[dict] = None,
    num_teams: Optional[int] = None,
    playoff_record: Optional[dict] = None,
    playoff_status: Optional[str] = None,
    alliance: bool = False,
    overall: Optional[str] = None,
    alliance_str: Optional[str] = None,
) -> dict:
    qual = None
    if rank is not None:
        qual = {
            "num_teams": num_teams,
            "status": "completed",
            "ranking": {"rank": rank, "record": record, "team_key": None},
        }
    playoff = None
    if playoff_record is not None or playoff_status is not None:
        playoff = {"level": "f", "status": playoff_status, "record": playoff_record}
    return {
        "qual": qual,
        "playoff": playoff,
        "alliance": {"name": "Alliance 1", "number": 1, "pick": 0} if alliance else None,
        "overall_status_str": overall,
        "alliance_status_str": alliance_str,
        "last_match_key": None,
    }


def award_json(name: str, event_key: str, *team_keys: str, award_type: int = 1) -> dict:
    return {
        "name": name,
        "award_type": award_type,
        "event_key": event_key,
        "year": int(event_key[:4]),
        "recipient_list": [{"team_key": tk, "awardee": None} for tk in team_keys],
    }
