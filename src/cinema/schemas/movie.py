"""
Pydantic schemas for Movie and CinemaHall resources
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cinema.models import ROW_LABELS


class MovieBase(BaseModel):
    """Base Movie schema"""
    title: str = Field(..., max_length=200, description="Movie title")
    description: str = Field("", description="Synopsis")
    genre: str = Field("", max_length=100, description="Genre")
    duration_minutes: int = Field(..., gt=0, description="Running time in minutes")
    release_date: date
    director: str = Field("", max_length=200)
    actors: str = Field("", max_length=1000, description="Comma-separated cast")
    distributor: str = Field("", max_length=200)
    poster_url: Optional[str] = Field(None, max_length=500)
    trailer_url: Optional[str] = Field(None, max_length=500)


class MovieCreate(MovieBase):
    pass


class MovieUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    genre: Optional[str] = Field(None, max_length=100)
    duration_minutes: Optional[int] = Field(None, gt=0)
    release_date: Optional[date] = None
    director: Optional[str] = Field(None, max_length=200)
    actors: Optional[str] = Field(None, max_length=1000)
    distributor: Optional[str] = Field(None, max_length=200)
    poster_url: Optional[str] = Field(None, max_length=500)
    trailer_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class MovieResponse(MovieBase):
    """Movie response schema"""
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MovieListResponse(BaseModel):
    """Response schema for listing movies"""
    movies: List[MovieResponse]
    total: int
    page: int
    page_size: int


class CinemaHallCreate(BaseModel):
    name: str = Field(..., max_length=100)
    location: str = Field(..., max_length=200)
    total_rows: int = Field(..., gt=0, le=len(ROW_LABELS), description="Rows are lettered A..P")
    seats_per_row: int = Field(..., gt=0, le=50)


class CinemaHallUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    is_active: Optional[bool] = None


class CinemaHallResponse(CinemaHallCreate):
    id: int
    is_active: bool
    capacity: int

    class Config:
        from_attributes = True
