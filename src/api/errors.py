"""
Exception handlers.

Domain errors become ``{"detail": ..., "code": ...}`` with a status code per
kind.  Storage faults are logged and surface as a generic 500; they are
never dressed up as a domain error.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.domain.errors import (
    InvalidAction,
    InvalidSchedule,
    InvalidState,
    InvalidTimezone,
    NoEligibleRides,
    NotFound,
    RideServiceError,
    Unauthenticated,
    Unauthorized,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[RideServiceError], int] = {
    InvalidSchedule: 400,
    InvalidAction: 400,
    NoEligibleRides: 400,
    Unauthenticated: 401,
    Unauthorized: 403,
    NotFound: 404,
    InvalidState: 409,
    InvalidTimezone: 422,
}


def status_code_for(exc: RideServiceError) -> int:
    for kind in type(exc).__mro__:
        if kind in STATUS_CODES:
            return STATUS_CODES[kind]
    return 400


async def ride_service_error_handler(
    request: Request, exc: RideServiceError
) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        "%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc
    )
    return JSONResponse(
        status_code=status_code, content={"detail": exc.message, "code": exc.code}
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RideServiceError, ride_service_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
