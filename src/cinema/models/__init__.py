"""
SQLAlchemy models for the cinema ticketing service

Import all models here for easy access and to ensure proper relationship setup.
"""
from cinema.core.database import Base

from cinema.models.user import User, UserRole
from cinema.models.movie import Movie, CinemaHall, ROW_LABELS
from cinema.models.showtime import Showtime, VIEW_TYPES
from cinema.models.seat import Seat, SeatState, SeatStatus
from cinema.models.hold import Hold, HoldSeat, HoldStatus
from cinema.models.ticket import Ticket, TicketStatus
from cinema.models.action_log import ActionLog

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Movie",
    "CinemaHall",
    "ROW_LABELS",
    "Showtime",
    "VIEW_TYPES",
    "Seat",
    "SeatState",
    "SeatStatus",
    "Hold",
    "HoldSeat",
    "HoldStatus",
    "Ticket",
    "TicketStatus",
    "ActionLog",
]
