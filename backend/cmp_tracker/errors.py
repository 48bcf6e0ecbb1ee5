"""Error taxonomy for upstream (TBA) access and configuration problems."""
from __future__ import annotations

from typing import Optional


class CmpTrackerError(Exception):
    """Base class for every error raised by the tracker core."""


class ConfigError(CmpTrackerError):
    """Required configuration (the TBA credential) is missing."""


class UpstreamAuthError(ConfigError):
    """No API key is configured, so no upstream request can be made."""

    def __init__(self, message: str = "TBA_API_KEY is not set") -> None:
        super().__init__(message)


class UpstreamError(CmpTrackerError):
    """TBA answered with a non-2xx status (or could not be reached at all)."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: str = "") -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.message = message
        super().__init__(message)


class UpstreamRateLimitError(UpstreamError):
    """TBA signalled HTTP 429. Not retried within the current call."""

    def __init__(self, endpoint: str = "") -> None:
        super().__init__(
            "The Blue Alliance API rate limit reached. Please try again later.",
            status_code=429,
            endpoint=endpoint,
        )


class UpstreamUnavailableError(UpstreamError):
    """Transport-level failure (DNS, connect, timeout, reset)."""

    def __init__(self, message: str, endpoint: str = "") -> None:
        super().__init__(message, status_code=None, endpoint=endpoint)
