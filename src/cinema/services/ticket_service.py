"""
Ticket Service - ticket queries and status transitions

Allowed transitions: CONFIRMED -> USED (door scan) and
CONFIRMED -> CANCELLED (frees the seat in the same transaction).
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.core.database import atomic
from cinema.models import Movie, SeatState, SeatStatus, Showtime, Ticket, TicketStatus
from cinema.services.errors import (
    ConflictError,
    InvalidTicketTransitionError,
    NotFoundError,
    NotOwnerError,
)
from cinema.services.seat_inventory import SeatInventoryStore, publish_seat_change

logger = logging.getLogger(__name__)


async def _transition(db: AsyncSession, ticket_id: int, new_status: TicketStatus, **values) -> None:
    """Conditional CONFIRMED -> new_status; a second concurrent transition fails"""
    stmt = (
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status == TicketStatus.CONFIRMED)
        .values(status=new_status, **values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        raise InvalidTicketTransitionError(f"Ticket {ticket_id} is no longer CONFIRMED")


class TicketService:
    """Service for ticket retrieval, cancellation and validation"""

    @staticmethod
    async def get_ticket(db: AsyncSession, ticket_id: int) -> Ticket:
        query = (
            select(Ticket)
            .where(Ticket.id == ticket_id)
            .execution_options(populate_existing=True)
        )
        ticket = (await db.execute(query)).scalar_one_or_none()
        if not ticket:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    @staticmethod
    async def get_by_number(db: AsyncSession, ticket_number: str) -> Ticket:
        query = select(Ticket).where(Ticket.ticket_number == ticket_number)
        ticket = (await db.execute(query)).scalar_one_or_none()
        if not ticket:
            raise NotFoundError(f"Ticket {ticket_number} not found")
        return ticket

    @staticmethod
    async def get_owner_ticket(db: AsyncSession, ticket_id: int, owner_token: str) -> Ticket:
        ticket = await TicketService.get_ticket(db, ticket_id)
        if ticket.owner_token != owner_token:
            raise NotOwnerError(f"Ticket {ticket_id} belongs to another owner")
        return ticket

    @staticmethod
    async def list_owner_tickets(db: AsyncSession, owner_token: str) -> List[Ticket]:
        """Owner's tickets, newest first"""
        query = (
            select(Ticket)
            .where(Ticket.owner_token == owner_token)
            .order_by(Ticket.issued_at.desc(), Ticket.id.desc())
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def search_tickets(
        db: AsyncSession,
        search: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Ticket], int]:
        """Admin search by ticket number or movie title, newest first"""
        query = (
            select(Ticket)
            .join(Showtime, Showtime.id == Ticket.showtime_id)
            .join(Movie, Movie.id == Showtime.movie_id)
        )
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Ticket.ticket_number.ilike(pattern), Movie.title.ilike(pattern)))
        if status:
            query = query.where(Ticket.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar()

        query = (
            query.order_by(Ticket.issued_at.desc(), Ticket.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def cancel_ticket(
        db: AsyncSession,
        ticket_id: int,
        owner_token: str,
        is_admin: bool = False,
    ) -> Ticket:
        """
        Cancel a confirmed ticket and return its seat to availability.

        Owners may cancel before the showtime starts; admins at any time.
        """
        ticket = await TicketService.get_ticket(db, ticket_id)
        if not is_admin and ticket.owner_token != owner_token:
            raise NotOwnerError(f"Ticket {ticket_id} belongs to another owner")
        if ticket.status != TicketStatus.CONFIRMED:
            raise InvalidTicketTransitionError(
                f"Cannot cancel a {ticket.status.value} ticket"
            )

        showtime = await db.get(Showtime, ticket.showtime_id)
        if not is_admin and showtime.has_started:
            raise InvalidTicketTransitionError("Cannot cancel a ticket after the showtime started")

        showtime_id = ticket.showtime_id
        seat_id = ticket.seat_id
        booked = SeatState.booked(ticket.hold_id, ticket.id)

        async with atomic(db):
            await _transition(db, ticket_id, TicketStatus.CANCELLED, cancelled_at=clock.utcnow())
            try:
                await SeatInventoryStore.compare_and_set_status(db, seat_id, booked, SeatState.available())
            except ConflictError:
                raise InvalidTicketTransitionError(f"Seat of ticket {ticket_id} is not bound to it")

        logger.info(f"Ticket {ticket_id} cancelled", extra={"ticket_id": ticket_id, "showtime_id": showtime_id})
        await publish_seat_change(showtime_id, [seat_id], SeatStatus.AVAILABLE)
        return await TicketService.get_ticket(db, ticket_id)

    @staticmethod
    async def mark_used(db: AsyncSession, ticket_id: int) -> Ticket:
        """Validate a ticket at the door"""
        ticket = await TicketService.get_ticket(db, ticket_id)
        if ticket.status != TicketStatus.CONFIRMED:
            raise InvalidTicketTransitionError(f"Cannot use a {ticket.status.value} ticket")

        async with atomic(db):
            await _transition(db, ticket_id, TicketStatus.USED, validated_at=clock.utcnow())

        logger.info(f"Ticket {ticket_id} validated", extra={"ticket_id": ticket_id})
        return await TicketService.get_ticket(db, ticket_id)
