"""Mapping of attendance errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from campus_attendance.domain.errors import (
    AttendanceError,
    InvalidInput,
    InvalidState,
    NotFound,
    Unauthorized,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AttendanceError], int], ...] = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (InvalidState, status.HTTP_409_CONFLICT),
    (InvalidInput, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_code_for(exc: AttendanceError) -> int:
    """Return the HTTP status for an attendance error."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def attendance_error_handler(
    request: Request, exc: AttendanceError
) -> JSONResponse:
    """Render an attendance error as a JSON body."""
    logger.info(
        "Request rejected: %s %s -> %s: %s",
        request.method,
        request.url.path,
        exc.error_code,
        exc.message,
    )
    return JSONResponse(
        status_code=status_code_for(exc),
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the attendance error handler on the app."""
    app.add_exception_handler(AttendanceError, attendance_error_handler)
