"""The Blue Alliance API v3 async client: TTL cache, FIFO queue, per-minute rate limit."""
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import (
    BLUE_ALLIANCE_API_KEY,
    TBA_BASE,
    TBA_CACHE_TTL,
    TBA_RATE_LIMIT_PER_MINUTE,
    TBA_TIMEOUT,
)
from ..errors import (
    CmpTrackerError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamUnavailableError,
)
from ..schemas import Award, Event, EventRankings, Team, TeamEventStatus
from .cache_service import CacheStore, get_cache_store

logger = logging.getLogger(__name__)

CACHE_PREFIX = "tba:"
RATE_WINDOW = 60.0  # seconds
RATE_BUFFER = 1.0  # seconds added to every rate-limit wait

_MISSING = object()
M = TypeVar("M", bound=BaseModel)


def _retrieve_exception(fut: asyncio.Future) -> None:
    # A caller that was cancelled never awaits its future again
    if not fut.cancelled():
        fut.exception()


def _fail_orphan(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_exception(
            UpstreamUnavailableError("Request abandoned: the event loop it was queued on changed")
        )


class TBAClient:
    """Async wrapper around the TBA REST API.

    Reads go through the cache first. Misses are queued and dispatched one at
    a time by a single drain task, which keeps the aggregate request rate
    under ``rate_limit`` per minute no matter how many coroutines are asking.
    Concurrent misses for the same endpoint share one upstream request.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        cache: Optional[CacheStore] = None,
        rate_limit: Optional[int] = None,
        cache_ttl: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.api_key = BLUE_ALLIANCE_API_KEY if api_key is None else api_key
        self.headers = {"X-TBA-Auth-Key": self.api_key}
        self.cache = cache if cache is not None else get_cache_store()
        self.rate_limit = rate_limit or TBA_RATE_LIMIT_PER_MINUTE
        self.cache_ttl = TBA_CACHE_TTL if cache_ttl is None else cache_ttl
        self.requests_sent = 0

        self._transport = transport
        self._clock = clock
        self._sleep = sleep
        self._http: Optional[httpx.AsyncClient] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: deque[tuple[str, asyncio.Future, bool]] = deque()
        self._pending: dict[str, asyncio.Future] = {}
        self._drain_task: Optional[asyncio.Task] = None

        self._window_start: Optional[float] = None
        self._requests_this_window = 0

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=TBA_BASE,
                headers=self.headers,
                timeout=TBA_TIMEOUT,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()

    # ── Read-through fetch ──────────────────────────────────
    async def get(self, endpoint: str, *, use_cache: bool = True) -> Any:
        """JSON for *endpoint*, from the cache or through the request queue.

        With ``use_cache=False`` the cache is neither read nor written, but
        the request still waits its turn under the rate limit.
        """
        if not self.api_key:
            raise UpstreamAuthError(
                "The Blue Alliance API key not found in environment variables (TBA_API_KEY)"
            )

        if use_cache:
            data = self.cache.get(CACHE_PREFIX + endpoint, _MISSING)
            if data is not _MISSING:
                logger.debug("CACHE HIT: %s", endpoint)
                return data

        await self._bind_loop()
        fut = self._pending.get(endpoint)
        if fut is None:
            fut = self._loop.create_future()
            fut.add_done_callback(_retrieve_exception)
            self._pending[endpoint] = fut
            self._queue.append((endpoint, fut, use_cache))
            self._ensure_draining()
        # Shielded: a caller that gives up does not cancel the dispatch,
        # whose result still lands in the cache.
        return await asyncio.shield(fut)

    async def ping(self) -> bool:
        """True if TBA answers ``/status``. Queued and rate limited, never cached."""
        try:
            await self.get("/status", use_cache=False)
        except CmpTrackerError as exc:
            logger.warning("TBA status check failed: %s", exc)
            return False
        return True

    async def _bind_loop(self) -> None:
        loop = asyncio.get_running_loop()
        if self._loop is loop:
            return

        # Queue state and pooled connections belong to the old loop
        old_loop, stale_http = self._loop, self._http
        orphans = [fut for fut in self._pending.values() if not fut.done()]
        self._loop = loop
        self._queue.clear()
        self._pending.clear()
        self._drain_task = None
        self._http = None

        if orphans:
            logger.warning("Event loop changed; failing %d queued request(s)", len(orphans))
            if old_loop is not None and not old_loop.is_closed():
                for fut in orphans:
                    old_loop.call_soon_threadsafe(_fail_orphan, fut)

        if stale_http is not None and not stale_http.is_closed:
            try:
                await stale_http.aclose()
            except RuntimeError as exc:
                # Its connections may be tied to a loop that no longer runs
                logger.warning("Could not close HTTP client from previous event loop: %r", exc)

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = self._loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._queue:
            endpoint, fut, use_cache = self._queue.popleft()
            try:
                await self._acquire_slot()
                data = await self._fetch(endpoint)
            except Exception as exc:
                if not fut.done():
                    fut.set_exception(exc)
            else:
                if use_cache:
                    self.cache.set(CACHE_PREFIX + endpoint, data, self.cache_ttl)
                if not fut.done():
                    fut.set_result(data)
            finally:
                self._pending.pop(endpoint, None)

    async def _acquire_slot(self) -> None:
        now = self._clock()
        if self._window_start is None or now - self._window_start >= RATE_WINDOW:
            self._window_start = now
            self._requests_this_window = 0

        if self._requests_this_window >= self.rate_limit:
            wait = RATE_WINDOW - (now - self._window_start) + RATE_BUFFER
            logger.warning(
                "Rate limit reached (%d/min). Waiting %.1fs before next request. %d queued.",
                self.rate_limit, wait, len(self._queue) + 1,
            )
            await self._sleep(wait)
            self._window_start = self._clock()
            self._requests_this_window = 0

        self._requests_this_window += 1

    async def _fetch(self, endpoint: str) -> Any:
        logger.info("API CALL: %s", endpoint)
        self.requests_sent += 1
        started = time.perf_counter()
        try:
            resp = await self._client().get(endpoint)
        except httpx.TransportError as exc:
            logger.warning("API UNAVAILABLE: %s - %r", endpoint, exc)
            raise UpstreamUnavailableError(
                f"Could not reach The Blue Alliance: {exc!r}", endpoint=endpoint
            ) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("API RESPONSE: %s - %d in %.0fms", endpoint, resp.status_code, elapsed_ms)

        if resp.status_code == 429:
            raise UpstreamRateLimitError(endpoint)
        if not resp.is_success:
            raise UpstreamError(
                f"API ERROR: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                endpoint=endpoint,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(
                "API ERROR: response was not valid JSON",
                status_code=resp.status_code,
                endpoint=endpoint,
            ) from exc

    # ── Cache control ───────────────────────────────────────
    def clear_cache(self) -> None:
        self.cache.delete_prefix(CACHE_PREFIX)

    def clear_cache_for(self, *endpoints: str) -> None:
        """Remove specific endpoints from the cache."""
        self.cache.delete(*(CACHE_PREFIX + ep for ep in endpoints))

    def clear_event_cache(self, event_key: str) -> int:
        """Drop the event's own record and every ``/event/<key>/...`` sub-resource."""
        base = f"{CACHE_PREFIX}/event/{event_key}"
        removed = self.cache.delete_prefix(base + "/")
        if base in self.cache:
            self.cache.delete(base)
            removed += 1
        return removed

    # ── Boundary parsing ────────────────────────────────────
    @staticmethod
    def _parse(model: type[M], data: Any, endpoint: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(
                f"Unexpected payload from {endpoint}: {exc.error_count()} validation error(s)",
                endpoint=endpoint,
            ) from exc

    async def _get_one(self, model: type[M], endpoint: str) -> M:
        return self._parse(model, await self.get(endpoint), endpoint)

    async def _get_list(self, model: type[M], endpoint: str) -> list[M]:
        data = await self.get(endpoint)
        return [self._parse(model, item, endpoint) for item in data or []]

    # ── Event endpoints ─────────────────────────────────────
    async def get_events_by_year(self, year: int) -> list[Event]:
        return await self._get_list(Event, f"/events/{year}")

    async def get_event(self, event_key: str) -> Event:
        return await self._get_one(Event, f"/event/{event_key}")

    async def get_event_teams(self, event_key: str) -> list[Team]:
        return await self._get_list(Team, f"/event/{event_key}/teams")

    async def get_event_team_statuses(self, event_key: str) -> dict[str, TeamEventStatus]:
        """Batch ``team_key -> status`` for every team on the event roster.

        TBA answers ``null`` for teams with no status yet; they stay in the map
        as an empty ``TeamEventStatus`` so roster membership is preserved.
        """
        endpoint = f"/event/{event_key}/teams/statuses"
        data = await self.get(endpoint)
        return {
            tk: self._parse(TeamEventStatus, status or {}, endpoint)
            for tk, status in (data or {}).items()
        }

    async def get_event_rankings(self, event_key: str) -> EventRankings:
        # TBA answers null until the first ranking is published
        endpoint = f"/event/{event_key}/rankings"
        return self._parse(EventRankings, await self.get(endpoint) or {}, endpoint)

    async def get_event_awards(self, event_key: str) -> list[Award]:
        return await self._get_list(Award, f"/event/{event_key}/awards")

    # ── Team endpoints ──────────────────────────────────────
    async def get_team(self, team_key: str) -> Team:
        return await self._get_one(Team, f"/team/{team_key}")

    async def get_team_events(self, team_key: str, year: int) -> list[Event]:
        return await self._get_list(Event, f"/team/{team_key}/events/{year}")

    async def get_team_event_status(self, team_key: str, event_key: str) -> Optional[TeamEventStatus]:
        endpoint = f"/team/{team_key}/event/{event_key}/status"
        data = await self.get(endpoint)
        return self._parse(TeamEventStatus, data, endpoint) if data else None

    async def get_team_event_awards(self, team_key: str, event_key: str) -> list[Award]:
        return await self._get_list(Award, f"/team/{team_key}/event/{event_key}/awards")


# ── Singleton ───────────────────────────────────────────────
_client: Optional[TBAClient] = None


def get_tba_client() -> TBAClient:
    global _client
    if _client is None:
        _client = TBAClient()
    return _client
