"""
Ticket model - issued only by a successful reservation
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, text

from cinema.core import clock
from cinema.core.database import Base


class TicketStatus(PyEnum):
    """Enum for ticket status"""
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    USED = "USED"


_LIVE_TICKET = text("status != 'CANCELLED'")


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        # At most one non-cancelled ticket per seat
        Index(
            "uq_ticket_live_seat",
            "seat_id",
            unique=True,
            postgresql_where=_LIVE_TICKET,
            sqlite_where=_LIVE_TICKET,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    ticket_number = Column(String(50), nullable=False, unique=True, index=True)
    owner_token = Column(String(255), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id", ondelete="RESTRICT"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="RESTRICT"), nullable=False, index=True)
    hold_id = Column(Integer, ForeignKey("holds.id", ondelete="SET NULL"), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.CONFIRMED, index=True)
    barcode = Column(String(64), nullable=False)
    payment_transaction_id = Column(String(255), nullable=True)
    issued_at = Column(DateTime, default=clock.utcnow, nullable=False, index=True)
    validated_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return (f"<Ticket(id={self.id}, number='{self.ticket_number}', seat_id={self.seat_id}, "
                f"status='{self.status.value}')>")

    @property
    def is_live(self) -> bool:
        return self.status != TicketStatus.CANCELLED
