"""
Showtime model - a movie screened in a hall at a given time and price
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String

from cinema.core import clock
from cinema.core.database import Base

VIEW_TYPES = ("2D", "3D", "IMAX")


class Showtime(Base):
    __tablename__ = "showtimes"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="RESTRICT"), nullable=False, index=True)
    cinema_hall_id = Column(Integer, ForeignKey("cinema_halls.id", ondelete="RESTRICT"), nullable=False, index=True)
    starts_at = Column(DateTime, nullable=False, index=True)
    view_type = Column(String(10), nullable=False, default="2D")
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=clock.utcnow, nullable=False)

    def __repr__(self):
        return (f"<Showtime(id={self.id}, movie_id={self.movie_id}, "
                f"hall_id={self.cinema_hall_id}, starts_at='{self.starts_at}')>")

    @property
    def has_started(self) -> bool:
        return clock.utcnow() >= self.starts_at
