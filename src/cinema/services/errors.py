"""
Domain exceptions raised by the service layer
"""
from typing import Iterable, Optional


class BookingServiceError(Exception):
    """Base exception for booking service errors"""
    pass


class ConflictError(BookingServiceError):
    """
    A compare-and-set found a different state than expected.

    Low-level: always caught by the hold manager, coordinator or sweeper and
    translated into one of the domain errors below.
    """
    pass


class SeatConflictError(ConflictError):
    """Raised when a seat's current state does not match the expected state"""

    def __init__(self, seat_id: int):
        self.seat_id = seat_id
        super().__init__(f"Seat {seat_id} changed state concurrently")


class HoldConflictError(ConflictError):
    """Raised when a hold was changed by another actor (stale version)"""

    def __init__(self, hold_id: int):
        self.hold_id = hold_id
        super().__init__(f"Hold {hold_id} changed state concurrently")


class SeatUnavailableError(BookingServiceError):
    """Raised when requested seats are not available"""

    def __init__(self, seat_ids: Iterable[int]):
        self.seat_ids = sorted(set(seat_ids))
        super().__init__(f"Seats {self.seat_ids} are not available")


class ShowtimeNotFoundError(BookingServiceError):
    """Raised when a showtime doesn't exist or is inactive"""
    pass


class HoldNotFoundError(BookingServiceError):
    """Raised when a hold doesn't exist"""
    pass


class HoldExpiredError(BookingServiceError):
    """Raised when a hold is past its deadline or no longer active"""
    pass


class NotOwnerError(BookingServiceError):
    """Raised when the caller does not own the hold or ticket"""
    pass


class TooManyActiveHoldsError(BookingServiceError):
    """Raised when an owner has too many active holds"""
    pass


class PaymentDeclinedError(BookingServiceError):
    """Raised when payment authorization is declined, fails or times out"""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "Payment declined"
        super().__init__(self.reason)


class ReservationRaceLostError(BookingServiceError):
    """Raised when a seat of the hold was claimed by someone else mid-confirmation"""
    pass


class TicketIssueError(BookingServiceError):
    """Raised when a unique ticket number could not be allocated"""
    pass


class NotFoundError(Exception):
    """Raised when a catalog, ticket or user record is missing"""
    pass


class CatalogError(Exception):
    """Raised when a catalog change is not allowed"""
    pass


class InvalidTicketTransitionError(Exception):
    """Raised for ticket status changes other than CONFIRMED -> USED/CANCELLED"""
    pass


class AuthenticationError(Exception):
    """Raised when credentials are wrong or a user is inactive"""
    pass


class UserAlreadyExistsError(Exception):
    """Raised when registering an email that is already taken"""
    pass


class InvalidPasswordError(Exception):
    """Raised when a password change gives the wrong current password"""
    pass
