"""
Error handling for the API.

Every error leaves the service as the same JSON body:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- path: request path
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    DeliveryError,
    RecurrenceError,
    ReminderNotFoundError,
    TodozenError,
    ValidationError,
)

logger = get_logger(__name__)

# Exception text stays in the logs
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"

# Checked in order, first isinstance match wins; other TodozenErrors are 500
DOMAIN_STATUS: list[tuple[type[TodozenError], int]] = [
    (ReminderNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (RecurrenceError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DeliveryError, status.HTTP_502_BAD_GATEWAY),
]

HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "UNPROCESSABLE_ENTITY",
    503: "SERVICE_UNAVAILABLE",
}

HINTS: dict[str, str] = {
    "REMINDER_NOT_FOUND": "List reminders with GET /api/reminders and check the ID.",
    "INVALID_RULE": "Use an RFC-5545 RRULE body such as FREQ=WEEKLY;BYDAY=MO,WE.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "PUSH_DELIVERY_FAILED": "The push service rejected the request. Check the VAPID keys.",
    "PUSH_ENDPOINT_GONE": "The subscription expired. Subscribe again from the browser.",
    "LOCAL_DELIVERY_FAILED": "Grant notification permission and retry.",
    "UNAUTHORIZED": "Send Authorization: Bearer <CRON_SECRET>.",
    "SERVICE_UNAVAILABLE": "The service is starting up or shutting down. Retry shortly.",
}

STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    502: "An upstream delivery service failed. Retry later.",
}


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    detail: str | None = None,
) -> JSONResponse:
    """Standard JSON error body."""
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=HINTS.get(error_code) or STATUS_HINTS.get(status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def domain_status(exc: TodozenError) -> int:
    for exc_type, status_code in DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence: unexpected exceptions become a 500 error body."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                request_id=getattr(request.state, "request_id", None),
                path=request.url.path,
                error_type=e.__class__.__name__,
                error=str(e),
                exc_info=True,
            )
            return error_response(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                INTERNAL_ERROR_MESSAGE,
            )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the handlers producing the standard error body."""

    @app.exception_handler(TodozenError)
    async def domain_exception_handler(request: Request, exc: TodozenError) -> JSONResponse:
        status_code = domain_status(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "request_error",
            path=request.url.path,
            error_code=exc.code,
            error=exc.message,
            status=status_code,
        )
        return error_response(request, status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            detail="; ".join(problems),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = str(exc.detail or "")
        error_code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        if exc.status_code == status.HTTP_404_NOT_FOUND and detail.lower().startswith("reminder"):
            error_code = "REMINDER_NOT_FOUND"

        response = error_response(request, exc.status_code, error_code, detail or "Request failed")
        if exc.headers:
            response.headers.update(exc.headers)
        return response
