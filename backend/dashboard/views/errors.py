"""Mapping of pbstats error kinds onto HTTP responses for the JSON API."""

from __future__ import annotations

from http import HTTPStatus

import structlog
from starlette.responses import JSONResponse

from pbstats.errors import PbStatsError, Unauthenticated, ValidationFailure

logger = structlog.get_logger()


def error_status(exc: PbStatsError) -> HTTPStatus:
    """400 for bad input, 401 without an identity, 502 when a hosted service failed."""
    if isinstance(exc, ValidationFailure):
        return HTTPStatus.BAD_REQUEST
    if isinstance(exc, Unauthenticated):
        return HTTPStatus.UNAUTHORIZED
    return HTTPStatus.BAD_GATEWAY


def error_response(exc: PbStatsError) -> JSONResponse:
    status = error_status(exc)
    logger.info("api request failed", status=int(status), error=str(exc))
    return JSONResponse({"error": str(exc)}, status_code=status)
