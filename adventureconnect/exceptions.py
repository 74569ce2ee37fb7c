"""Error taxonomy shared by every service and the handlers that render it.

Services raise the classes below; ``register_exception_handlers`` turns them
into ``{"kind": ..., "message": ...}`` JSON bodies with a stable ``kind`` and
the HTTP status of the error family.
"""
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from adventureconnect.config import Settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to a client-visible response"""

    kind = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# 400 - malformed or missing input
class ValidationError(AppError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidRole(ValidationError):
    kind = "invalid_role"
    default_message = "Role must be either 'traveler' or 'provider'"


class InvalidRating(ValidationError):
    kind = "invalid_rating"
    default_message = "Rating must be an integer between 1 and 5"


class InvalidRange(ValidationError):
    kind = "invalid_range"
    default_message = "Start date must be before end date"


# 401
class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class InvalidCredentials(Unauthenticated):
    kind = "invalid_credentials"
    default_message = "Invalid email or password"


# 403
class Forbidden(AppError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not enough permissions"


class NotOwner(Forbidden):
    kind = "not_owner"
    default_message = "You do not own this resource"


class ReviewNotAllowed(Forbidden):
    kind = "review_not_allowed"
    default_message = "Only travelers with a completed booking can review this trip"


# 404
class NotFound(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


# 409
class Conflict(AppError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class DuplicateEmail(Conflict):
    kind = "duplicate_email"
    default_message = "Email already registered"


class DuplicateReview(Conflict):
    kind = "duplicate_review"
    default_message = "You have already reviewed this trip"


class BookingNumberExhausted(Conflict):
    kind = "booking_number_exhausted"
    default_message = "Could not allocate a unique booking number"


# 400 - request is well formed but the current state does not allow it
class StateError(AppError):
    kind = "state_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


class InvalidTransition(StateError):
    kind = "invalid_transition"
    default_message = "Booking status transition not allowed"


class CancellationWindowViolation(StateError):
    kind = "cancellation_window_violation"
    default_message = "Booking can no longer be cancelled this close to the trip"


class InsufficientAvailability(StateError):
    kind = "insufficient_availability"
    default_message = "Not enough spots available for this date"


class TripUnavailable(StateError):
    kind = "trip_unavailable"
    default_message = "Trip is not available for booking"


_KIND_BY_STATUS = {
    400: "validation_error",
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


def error_body(kind: str, message: str, **extra) -> dict:
    body = {"kind": kind, "message": message}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install JSON error handlers on ``app``"""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        headers = None
        if isinstance(exc, Unauthenticated):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.kind, exc.message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(
                "validation_error",
                "Request validation failed",
                errors=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        kind = _KIND_BY_STATUS.get(exc.status_code, "error")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(kind, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        extra = {}
        if not settings.is_production:
            extra["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("unexpected", "Internal server error", **extra),
        )
