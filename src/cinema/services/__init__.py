"""
Services package exports
"""
from cinema.services.errors import (
    BookingServiceError,
    ConflictError,
    SeatConflictError,
    HoldConflictError,
    SeatUnavailableError,
    ShowtimeNotFoundError,
    HoldNotFoundError,
    HoldExpiredError,
    NotOwnerError,
    TooManyActiveHoldsError,
    PaymentDeclinedError,
    ReservationRaceLostError,
    TicketIssueError,
    NotFoundError,
    CatalogError,
    InvalidTicketTransitionError,
    AuthenticationError,
    UserAlreadyExistsError,
    InvalidPasswordError,
)
from cinema.services.seat_inventory import SeatInventoryStore
from cinema.services.hold_manager import HoldManager
from cinema.services.reservation_coordinator import ReservationCoordinator
from cinema.services.expiry_worker import ExpirySweeper, start_expiry_worker, stop_expiry_worker
from cinema.services.ticket_issuer import TicketDraft, TicketIssuer
from cinema.services.ticket_service import TicketService
from cinema.services.catalog_service import CatalogService
from cinema.services.user_service import UserService
from cinema.services.dashboard_service import DashboardService
from cinema.services.action_log_service import ActionLogService, audit_log
from cinema.services.payment import (
    CardDetails,
    PaymentAuthorization,
    PaymentGateway,
    SimulatedPaymentGateway,
    HttpPaymentGateway,
    get_payment_gateway,
)
from cinema.services.websocket_manager import manager

__all__ = [
    "BookingServiceError",
    "ConflictError",
    "SeatConflictError",
    "HoldConflictError",
    "SeatUnavailableError",
    "ShowtimeNotFoundError",
    "HoldNotFoundError",
    "HoldExpiredError",
    "NotOwnerError",
    "TooManyActiveHoldsError",
    "PaymentDeclinedError",
    "ReservationRaceLostError",
    "TicketIssueError",
    "NotFoundError",
    "CatalogError",
    "InvalidTicketTransitionError",
    "AuthenticationError",
    "UserAlreadyExistsError",
    "InvalidPasswordError",
    "SeatInventoryStore",
    "HoldManager",
    "ReservationCoordinator",
    "ExpirySweeper",
    "start_expiry_worker",
    "stop_expiry_worker",
    "TicketDraft",
    "TicketIssuer",
    "TicketService",
    "CatalogService",
    "UserService",
    "DashboardService",
    "ActionLogService",
    "audit_log",
    "CardDetails",
    "PaymentAuthorization",
    "PaymentGateway",
    "SimulatedPaymentGateway",
    "HttpPaymentGateway",
    "get_payment_gateway",
    "manager",
]
