"""
Movie and CinemaHall models - the static catalog
"""
from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text

from cinema.core import clock
from cinema.core.database import Base

# Row letters available for seat generation
ROW_LABELS = "ABCDEFGHIJKLMNOP"


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    genre = Column(String(100), nullable=False, default="", index=True)
    duration_minutes = Column(Integer, nullable=False)
    release_date = Column(Date, nullable=False)
    director = Column(String(200), nullable=False, default="")
    actors = Column(String(1000), nullable=False, default="")
    distributor = Column(String(200), nullable=False, default="")
    poster_url = Column(String(500))
    trailer_url = Column(String(500))
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=clock.utcnow, nullable=False)
    updated_at = Column(DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)

    def __repr__(self):
        return f"<Movie(id={self.id}, title='{self.title}')>"


class CinemaHall(Base):
    __tablename__ = "cinema_halls"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    location = Column(String(200), nullable=False)
    total_rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<CinemaHall(id={self.id}, name='{self.name}', {self.total_rows}x{self.seats_per_row})>"

    @property
    def capacity(self) -> int:
        return min(self.total_rows, len(ROW_LABELS)) * self.seats_per_row
