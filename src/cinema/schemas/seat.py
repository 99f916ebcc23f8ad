"""
Pydantic schemas for Seat resources
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from cinema.models import SeatStatus


class SeatResponse(BaseModel):
    """Seat response schema; hold and ticket ids stay server-side"""
    id: int
    showtime_id: int
    row: str
    number: int
    label: str = Field(..., description="Human-readable seat label, e.g. A-12")
    is_wheelchair_accessible: bool
    is_vip: bool
    status: SeatStatus = Field(..., description="Seat status (AVAILABLE, HELD, BOOKED)")

    class Config:
        from_attributes = True


class SeatMapResponse(BaseModel):
    """Response schema for seat map"""
    showtime_id: int
    seats: List[SeatResponse]
    total_seats: int
    available_seats: int
    held_seats: int
    booked_seats: int

    # Grouping by row for easier frontend rendering
    rows: Dict[str, List[SeatResponse]] = Field(
        default_factory=dict,
        description="Seats grouped by row letter",
    )
    cached: Optional[bool] = False
