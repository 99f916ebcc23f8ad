"""Pydantic schemas for Ticket resources"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from cinema.models import TicketStatus


class TicketResponse(BaseModel):
    id: int
    ticket_number: str
    showtime_id: int
    seat_id: int
    hold_id: Optional[int] = None
    price: Decimal
    status: TicketStatus
    barcode: str
    issued_at: datetime
    validated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketListResponse(BaseModel):
    tickets: List[TicketResponse]
    total: int


class TicketPageResponse(TicketListResponse):
    page: int
    page_size: int


class ConfirmationResponse(BaseModel):
    hold_id: int
    total_amount: Decimal
    tickets: List[TicketResponse]
