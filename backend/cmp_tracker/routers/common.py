"""Translate core errors into structured HTTP errors for the API routes."""
from fastapi import HTTPException

from ..errors import (
    CmpTrackerError,
    ConfigError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamUnavailableError,
)


def upstream_http_error(exc: CmpTrackerError, summary: str) -> HTTPException:
    if isinstance(exc, ConfigError):
        status = 500
    elif isinstance(exc, UpstreamRateLimitError):
        status = 429
    elif isinstance(exc, UpstreamUnavailableError):
        status = 503
    elif isinstance(exc, UpstreamError) and exc.status_code == 404:
        status = 404
    else:
        status = 502

    detail = {"error": summary, "message": str(exc)}
    if isinstance(exc, UpstreamError) and exc.status_code is not None:
        detail["upstreamStatus"] = exc.status_code
    return HTTPException(status_code=status, detail=detail)
