"""FRC Championship Tracker: FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import BLUE_ALLIANCE_API_KEY, CORS_ORIGINS
from .logging_config import configure_logging
from .routers import events, search, teams
from .services.tba_client import TBAClient, get_tba_client

log = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not BLUE_ALLIANCE_API_KEY:
        log.warning("TBA_API_KEY environment variable not set; every upstream call will fail")
    log.info("FRC Championship Tracker started")
    yield
    await get_tba_client().aclose()


app = FastAPI(title="FRC Championship Tracker", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routers ─────────────────────────────────────────────
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(search.router, prefix="/api", tags=["Search"])
app.include_router(teams.router, prefix="/api/team", tags=["Teams"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/status")
async def api_status(client: TBAClient = Depends(get_tba_client)):
    """Check connectivity to TBA (uncached, but counted against the rate limit)."""
    return {"tba": await client.ping()}
