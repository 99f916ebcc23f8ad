"""
Pydantic schemas for API request/response validation
"""
from cinema.schemas.movie import (
    MovieBase,
    MovieCreate,
    MovieUpdate,
    MovieResponse,
    MovieListResponse,
    CinemaHallCreate,
    CinemaHallUpdate,
    CinemaHallResponse,
)
from cinema.schemas.showtime import ShowtimeCreate, ShowtimeUpdate, ShowtimeResponse
from cinema.schemas.seat import SeatResponse, SeatMapResponse
from cinema.schemas.hold import HoldCreate, HoldSeatResponse, HoldResponse, PaymentDetails, HoldConfirm
from cinema.schemas.ticket import TicketResponse, TicketListResponse, TicketPageResponse, ConfirmationResponse
from cinema.schemas.auth import (
    UserRegister,
    UserUpdate,
    UserResponse,
    UserListResponse,
    Token,
    LoginRequest,
    ProfileUpdate,
    PasswordChange,
)
from cinema.schemas.dashboard import GenreCount, DashboardResponse
from cinema.schemas.action_log import ActionLogResponse, ActionLogListResponse

__all__ = [
    # Catalog
    "MovieBase",
    "MovieCreate",
    "MovieUpdate",
    "MovieResponse",
    "MovieListResponse",
    "CinemaHallCreate",
    "CinemaHallUpdate",
    "CinemaHallResponse",
    "ShowtimeCreate",
    "ShowtimeUpdate",
    "ShowtimeResponse",
    # Seats
    "SeatResponse",
    "SeatMapResponse",
    # Holds
    "HoldCreate",
    "HoldSeatResponse",
    "HoldResponse",
    "PaymentDetails",
    "HoldConfirm",
    # Tickets
    "TicketResponse",
    "TicketListResponse",
    "TicketPageResponse",
    "ConfirmationResponse",
    # Users
    "UserRegister",
    "UserUpdate",
    "UserResponse",
    "UserListResponse",
    "Token",
    "LoginRequest",
    "ProfileUpdate",
    "PasswordChange",
    # Dashboard
    "GenreCount",
    "DashboardResponse",
    # Audit
    "ActionLogResponse",
    "ActionLogListResponse",
]
