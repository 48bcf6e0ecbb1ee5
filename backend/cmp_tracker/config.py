# config.py

import os
from dotenv import load_dotenv

load_dotenv()

# Blue Alliance API Key Configuration
# Set via environment variable TBA_API_KEY (loaded from .env locally).
# Missing key is a startup warning (see main.py); every upstream call then
# fails with UpstreamAuthError.
BLUE_ALLIANCE_API_KEY = os.environ.get("TBA_API_KEY", "")

TBA_BASE = os.environ.get("TBA_BASE_URL", "https://www.thebluealliance.com/api/v3")
TBA_TIMEOUT = float(os.environ.get("TBA_TIMEOUT", "30"))

# Kept below TBA's real limit on purpose
TBA_RATE_LIMIT_PER_MINUTE = int(os.environ.get("TBA_RATE_LIMIT_PER_MINUTE", "25"))

# Championship structure changes rarely; drop to 300 during live events
TBA_CACHE_TTL = int(os.environ.get("TBA_CACHE_TTL", "3600"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]
