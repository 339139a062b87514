"""Mapping of domain errors to HTTP responses."""
from fastapi import HTTPException

from app.core.errors import (
    CallDashboardError,
    ConfigurationError,
    InvalidAgent,
    SessionStateError,
    UpstreamError,
)



def to_http_exception(error: CallDashboardError) -> HTTPException:
    """Build the HTTPException surfaced for a domain error."""
    if isinstance(error, (InvalidAgent, SessionStateError)):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=500, detail=error.message)
    if isinstance(error, UpstreamError):
        return HTTPException(status_code=502, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)
