"""
Dashboard Service - headline numbers for the back-office
"""
import logging
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.models import Movie, Showtime, Ticket, TicketStatus, User

logger = logging.getLogger(__name__)

RECENT_TICKETS_LIMIT = 10


class DashboardService:

    @staticmethod
    async def get_stats(db: AsyncSession) -> Dict[str, Any]:
        """
        Collect totals, revenue and per-genre breakdowns.

        Revenue and tickets_by_genre only count tickets that were not
        cancelled. movies_by_genre only counts active movies.
        """
        total_users = (await db.execute(select(func.count(User.id)))).scalar()
        total_movies = (await db.execute(select(func.count(Movie.id)))).scalar()
        total_tickets = (await db.execute(select(func.count(Ticket.id)))).scalar()

        revenue = (await db.execute(
            select(func.coalesce(func.sum(Ticket.price), 0))
            .where(Ticket.status != TicketStatus.CANCELLED)
        )).scalar()

        movies_by_genre = await db.execute(
            select(Movie.genre, func.count(Movie.id))
            .where(Movie.is_active.is_(True))
            .group_by(Movie.genre)
            .order_by(Movie.genre)
        )

        tickets_by_genre = await db.execute(
            select(Movie.genre, func.count(Ticket.id))
            .join(Showtime, Ticket.showtime_id == Showtime.id)
            .join(Movie, Showtime.movie_id == Movie.id)
            .where(Ticket.status != TicketStatus.CANCELLED)
            .group_by(Movie.genre)
            .order_by(Movie.genre)
        )

        recent = await db.execute(
            select(Ticket)
            .order_by(Ticket.issued_at.desc(), Ticket.id.desc())
            .limit(RECENT_TICKETS_LIMIT)
        )

        return {
            "total_users": total_users,
            "total_movies": total_movies,
            "total_tickets": total_tickets,
            "total_revenue": Decimal(str(revenue)).quantize(Decimal("0.01")),
            "movies_by_genre": [{"genre": g, "count": c} for g, c in movies_by_genre.all()],
            "tickets_by_genre": [{"genre": g, "count": c} for g, c in tickets_by_genre.all()],
            "recent_tickets": list(recent.scalars().all()),
        }
