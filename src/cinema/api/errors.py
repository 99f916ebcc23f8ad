"""
Translation of service exceptions into HTTP responses
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cinema.services.errors import (
    AuthenticationError,
    BookingServiceError,
    CatalogError,
    HoldExpiredError,
    HoldNotFoundError,
    InvalidPasswordError,
    InvalidTicketTransitionError,
    NotFoundError,
    NotOwnerError,
    PaymentDeclinedError,
    ReservationRaceLostError,
    SeatUnavailableError,
    ShowtimeNotFoundError,
    TicketIssueError,
    TooManyActiveHoldsError,
    UserAlreadyExistsError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
ERROR_STATUS = [
    (SeatUnavailableError, 409, "seat_unavailable"),
    (ReservationRaceLostError, 409, "reservation_race_lost"),
    (HoldExpiredError, 410, "hold_expired"),
    (NotOwnerError, 403, "not_owner"),
    (PaymentDeclinedError, 402, "payment_declined"),
    (HoldNotFoundError, 404, "hold_not_found"),
    (ShowtimeNotFoundError, 404, "showtime_not_found"),
    (TooManyActiveHoldsError, 429, "too_many_active_holds"),
    (TicketIssueError, 503, "ticket_issue_failed"),
    (BookingServiceError, 400, "invalid_request"),
    (NotFoundError, 404, "not_found"),
    (InvalidTicketTransitionError, 409, "invalid_ticket_transition"),
    (CatalogError, 400, "invalid_request"),
    (UserAlreadyExistsError, 409, "user_exists"),
    (AuthenticationError, 401, "authentication_failed"),
    (InvalidPasswordError, 400, "invalid_password"),
]

HANDLED_ERRORS = (
    BookingServiceError,
    NotFoundError,
    InvalidTicketTransitionError,
    CatalogError,
    UserAlreadyExistsError,
    AuthenticationError,
    InvalidPasswordError,
)


def error_response(exc: Exception) -> JSONResponse:
    for error_class, status_code, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        status_code, code = 500, "internal_error"

    content = {"error": code, "detail": str(exc)}
    if isinstance(exc, SeatUnavailableError):
        content["seat_ids"] = exc.seat_ids
    if isinstance(exc, PaymentDeclinedError):
        content["detail"] = exc.reason

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def service_error_handler(request: Request, exc: Exception):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.__class__.__name__}: {exc}")
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": jsonable_encoder(exc.errors())},
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "Internal server error"},
    )


def register_error_handlers(app: FastAPI):
    for error_class in HANDLED_ERRORS:
        app.add_exception_handler(error_class, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
