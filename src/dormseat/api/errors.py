"""Translate domain errors into HTTP responses.

Error body: {"detail": <message>, "error": <kind>}, plus "conflict"
(identity or placement) for DuplicateDetected.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dormseat.domain.errors import DomainError, DuplicateDetectedError, RateLimitedError
from dormseat.observability.logging import get_logger
from dormseat.observability.redaction import safe_log_context

logger = get_logger(__name__)

RESERVATION_FIELDS_MESSAGE = "All reservation fields are required"

# Body-validation message per route prefix; longest match wins
_VALIDATION_MESSAGES = {
    "/reservations": RESERVATION_FIELDS_MESSAGE,
    "/admin-login": "Admin password is required",
    "/admin-settings": "Reservation times must be ISO-8601 date-times",
    "/announcement": "Announcement must have a text message and a boolean active flag",
    "/admin-announcement": "Announcement must have a text message and a boolean active flag",
}


def validation_message(path: str) -> str:
    matches = [prefix for prefix in _VALIDATION_MESSAGES if path.startswith(prefix)]
    if not matches:
        return "Invalid request"
    return _VALIDATION_MESSAGES[max(matches, key=len)]


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed",
            exc_info=exc,
            extra={"extra_fields": safe_log_context(kind=exc.kind, path=request.url.path)},
        )
    content = {"detail": exc.message, "error": exc.kind}
    if isinstance(exc, DuplicateDetectedError):
        content["conflict"] = exc.conflict
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    logger.info(
        "request rejected by validation",
        extra={"extra_fields": {"path": request.url.path, "fields": fields}},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": validation_message(request.url.path), "error": "ValidationError"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled exception",
        exc_info=exc,
        extra={"extra_fields": safe_log_context(path=request.url.path)},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server error", "error": "StoreError"},
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    RequestValidationError: request_validation_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
