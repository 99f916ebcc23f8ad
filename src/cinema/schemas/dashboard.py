"""Pydantic schemas for the back-office dashboard"""
from decimal import Decimal
from typing import List

from pydantic import BaseModel

from cinema.schemas.ticket import TicketResponse


class GenreCount(BaseModel):
    genre: str
    count: int


class DashboardResponse(BaseModel):
    total_users: int
    total_movies: int
    total_tickets: int
    total_revenue: Decimal
    movies_by_genre: List[GenreCount]
    tickets_by_genre: List[GenreCount]
    recent_tickets: List[TicketResponse]
