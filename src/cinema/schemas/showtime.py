"""
Pydantic schemas for Showtime resources
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cinema.models import VIEW_TYPES


def _check_view_type(value):
    if value is not None and value not in VIEW_TYPES:
        raise ValueError(f"view_type must be one of {', '.join(VIEW_TYPES)}")
    return value


def _to_naive_utc(value):
    """Start times are stored as naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ShowtimeCreate(BaseModel):
    movie_id: int = Field(..., gt=0)
    cinema_hall_id: int = Field(..., gt=0)
    starts_at: datetime = Field(..., description="Start time (UTC)")
    view_type: str = Field("2D", description="2D, 3D or IMAX")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)

    @field_validator("view_type")
    @classmethod
    def validate_view_type(cls, v):
        return _check_view_type(v)

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, v):
        return _to_naive_utc(v)


class ShowtimeUpdate(BaseModel):
    """Price and hall can only change while no seat is held or booked"""
    cinema_hall_id: Optional[int] = Field(None, gt=0)
    starts_at: Optional[datetime] = None
    view_type: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = None

    @field_validator("view_type")
    @classmethod
    def validate_view_type(cls, v):
        return _check_view_type(v)

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, v):
        return _to_naive_utc(v)


class ShowtimeResponse(BaseModel):
    id: int
    movie_id: int
    cinema_hall_id: int
    starts_at: datetime
    view_type: str
    price: Decimal
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
