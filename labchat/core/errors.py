"""Map calendar errors to HTTP responses.

Service and core functions raise plain exceptions; this is the one place
that decides which status code each one becomes. Error bodies follow the
shape the Labchat client already reads: ``{"error": message}``, plus
``fields`` for per-field validation messages.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from labchat.calendar.ranges import UnsupportedViewError
from labchat.calendar.recurring import RecurrenceValidationError
from labchat.calendar.service import (
    AssignmentError,
    AssignmentNotFoundError,
    CalendarError,
    EventNotFoundError,
    InvalidEventError,
    InvalidStatusChangeError,
    MemberNotFoundError,
    StatusNotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[CalendarError], int] = {
    EventNotFoundError: 404,
    MemberNotFoundError: 404,
    StatusNotFoundError: 404,
    AssignmentNotFoundError: 404,
    InvalidEventError: 400,
    InvalidStatusChangeError: 400,
    AssignmentError: 400,
}


def status_code_for(exc: CalendarError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


def add_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CalendarError)
    async def calendar_error_handler(request: Request, exc: CalendarError):
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(RecurrenceValidationError)
    async def recurrence_error_handler(request: Request, exc: RecurrenceValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc), "fields": exc.errors})

    @app.exception_handler(UnsupportedViewError)
    async def view_error_handler(request: Request, exc: UnsupportedViewError):
        # The view name comes straight from the query string
        return JSONResponse(status_code=400, content={"error": str(exc)})
