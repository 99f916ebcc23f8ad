"""
Hold model - time-boxed claim by one owner on seats of one showtime
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from cinema.core import clock
from cinema.core.database import Base


class HoldStatus(PyEnum):
    """Enum for hold status"""
    ACTIVE = "ACTIVE"
    CONFIRMED = "CONFIRMED"
    RELEASED = "RELEASED"
    EXPIRED = "EXPIRED"


class Hold(Base):
    __tablename__ = "holds"

    id = Column(Integer, primary_key=True, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_token = Column(String(255), nullable=False, index=True)
    status = Column(Enum(HoldStatus), nullable=False, default=HoldStatus.ACTIVE, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=clock.utcnow, nullable=False)
    closed_at = Column(DateTime, nullable=True)

    hold_seats = relationship(
        "HoldSeat",
        back_populates="hold",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="HoldSeat.seat_id",
    )

    def __repr__(self):
        return (f"<Hold(id={self.id}, showtime_id={self.showtime_id}, "
                f"owner='{self.owner_token}', status='{self.status.value}')>")

    @property
    def seat_ids(self) -> list:
        return [hs.seat_id for hs in self.hold_seats]

    @property
    def total_amount(self):
        return sum((hs.price_at_hold for hs in self.hold_seats), 0)

    def is_expired(self, now=None) -> bool:
        now = now or clock.utcnow()
        return now >= self.expires_at

    def is_live(self, now=None) -> bool:
        """ACTIVE and still inside its deadline"""
        return self.status == HoldStatus.ACTIVE and not self.is_expired(now)

    def time_remaining_seconds(self, now=None) -> int:
        if self.status != HoldStatus.ACTIVE:
            return 0
        now = now or clock.utcnow()
        return max(0, int((self.expires_at - now).total_seconds()))


class HoldSeat(Base):
    """Junction table linking a hold to its seats with the price snapshot"""
    __tablename__ = "hold_seats"
    __table_args__ = (
        UniqueConstraint("hold_id", "seat_id", name="uq_hold_seat"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hold_id = Column(Integer, ForeignKey("holds.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="CASCADE"), nullable=False, index=True)
    price_at_hold = Column(Numeric(10, 2), nullable=False)

    hold = relationship("Hold", back_populates="hold_seats")

    def __repr__(self):
        return f"<HoldSeat(hold_id={self.hold_id}, seat_id={self.seat_id}, price={self.price_at_hold})>"
