"""Pydantic schemas for Hold resources"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from cinema.core import clock
from cinema.models import HoldStatus


class HoldCreate(BaseModel):
    showtime_id: int = Field(..., gt=0)
    seat_ids: List[int] = Field(..., min_length=1)


class HoldSeatResponse(BaseModel):
    seat_id: int
    price_at_hold: Decimal

    class Config:
        from_attributes = True


class HoldResponse(BaseModel):
    id: int
    showtime_id: int
    status: HoldStatus
    expires_at: datetime
    created_at: datetime
    closed_at: Optional[datetime] = None
    total_amount: Decimal
    seats: List[HoldSeatResponse] = Field(default_factory=list)
    time_remaining_seconds: int = 0

    @classmethod
    def from_hold(cls, hold):
        """Convert Hold ORM model to response"""
        return cls(
            id=hold.id,
            showtime_id=hold.showtime_id,
            status=hold.status,
            expires_at=hold.expires_at,
            created_at=hold.created_at,
            closed_at=hold.closed_at,
            total_amount=hold.total_amount,
            seats=[HoldSeatResponse.model_validate(hs) for hs in hold.hold_seats],
            time_remaining_seconds=hold.time_remaining_seconds(clock.utcnow()),
        )


class PaymentDetails(BaseModel):
    card_number: str = Field(..., min_length=12, max_length=23)
    expiry: date = Field(..., description="Last valid day of the card")
    cvc: str = Field(..., min_length=3, max_length=4)
    name_on_card: str = Field(..., max_length=100)
    country: str = Field("", max_length=100)

    @field_validator("cvc")
    @classmethod
    def validate_cvc(cls, v):
        if not v.isdigit():
            raise ValueError("cvc must be numeric")
        return v


class HoldConfirm(BaseModel):
    payment: PaymentDetails
