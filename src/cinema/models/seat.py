"""
Seat model - CRITICAL for concurrency control

Seat status is the single source of truth for inventory. It only ever
changes through SeatInventoryStore.compare_and_set_status, a conditional
UPDATE guarded by the expected (status, hold_id, ticket_id) triple.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint

from cinema.core import clock
from cinema.core.database import Base


class SeatStatus(PyEnum):
    """Enum for seat status"""
    AVAILABLE = "AVAILABLE"
    HELD = "HELD"
    BOOKED = "BOOKED"


@dataclass(frozen=True)
class SeatState:
    """
    Value describing one seat status.

    HELD carries the hold id and its deadline; BOOKED keeps the confirming
    hold id and, once issued, the ticket id.
    """
    status: SeatStatus
    hold_id: Optional[int] = None
    hold_expires_at: Optional[datetime] = None
    ticket_id: Optional[int] = None

    @classmethod
    def available(cls) -> "SeatState":
        return cls(SeatStatus.AVAILABLE)

    @classmethod
    def held(cls, hold_id: int, expires_at: datetime) -> "SeatState":
        return cls(SeatStatus.HELD, hold_id=hold_id, hold_expires_at=expires_at)

    @classmethod
    def booked(cls, hold_id: Optional[int], ticket_id: Optional[int] = None) -> "SeatState":
        return cls(SeatStatus.BOOKED, hold_id=hold_id, ticket_id=ticket_id)

    @classmethod
    def of(cls, seat: "Seat") -> "SeatState":
        """Snapshot the current state of a loaded seat row"""
        return cls(
            status=seat.status,
            hold_id=seat.hold_id,
            hold_expires_at=seat.hold_expires_at,
            ticket_id=seat.ticket_id,
        )


class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("showtime_id", "row", "number", name="uq_seat_position"),
    )

    id = Column(Integer, primary_key=True, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id", ondelete="CASCADE"), nullable=False, index=True)
    row = Column(String(2), nullable=False)  # 'A', 'B', ...
    number = Column(Integer, nullable=False)  # 1, 2, ...
    is_wheelchair_accessible = Column(Boolean, nullable=False, default=False)
    is_vip = Column(Boolean, nullable=False, default=False)
    status = Column(Enum(SeatStatus), nullable=False, default=SeatStatus.AVAILABLE, index=True)
    hold_id = Column(Integer, ForeignKey("holds.id", ondelete="SET NULL"), nullable=True, index=True)
    hold_expires_at = Column(DateTime, nullable=True, index=True)
    # tickets.seat_id is the enforced reference; this mirrors it for the CAS guard
    ticket_id = Column(Integer, nullable=True, index=True)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=clock.utcnow, nullable=False)

    def __repr__(self):
        return (f"<Seat(id={self.id}, showtime_id={self.showtime_id}, "
                f"seat='{self.label}', status='{self.status.value}')>")

    @property
    def label(self) -> str:
        """Human-readable seat label, e.g. 'A-12'"""
        return f"{self.row}-{self.number}"
