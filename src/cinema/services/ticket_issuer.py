"""
Ticket Issuer - allocates ticket numbers and barcodes

Pure allocation: seat state has already been settled by the reservation
coordinator before a ticket is issued.
"""
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.core.config import settings
from cinema.core.metrics import tickets_issued_total
from cinema.models import Ticket, TicketStatus
from cinema.services.errors import TicketIssueError


@dataclass(frozen=True)
class TicketDraft:
    owner_token: str
    showtime_id: int
    seat_id: int
    price: Decimal
    user_id: Optional[int] = None
    hold_id: Optional[int] = None
    payment_transaction_id: Optional[str] = None


class TicketIssuer:

    @staticmethod
    def generate_ticket_number() -> str:
        """TKT-YYYYMMDD-XXXXXXXX (UTC date, 8 upper-case hex chars)"""
        return f"{settings.TICKET_NUMBER_PREFIX}-{clock.utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"

    @staticmethod
    def generate_barcode() -> str:
        return uuid.uuid4().hex[:20].upper()

    @staticmethod
    async def _number_taken(db: AsyncSession, ticket_number: str) -> bool:
        result = await db.execute(select(Ticket.id).where(Ticket.ticket_number == ticket_number))
        return result.first() is not None

    @staticmethod
    async def issue(db: AsyncSession, draft: TicketDraft) -> Ticket:
        """Create a CONFIRMED ticket with a collision-checked number (flushed, uncommitted)"""
        for _ in range(settings.TICKET_NUMBER_MAX_ATTEMPTS):
            ticket_number = TicketIssuer.generate_ticket_number()
            if not await TicketIssuer._number_taken(db, ticket_number):
                break
        else:
            raise TicketIssueError("Could not allocate a unique ticket number")

        ticket = Ticket(
            ticket_number=ticket_number,
            owner_token=draft.owner_token,
            user_id=draft.user_id,
            showtime_id=draft.showtime_id,
            seat_id=draft.seat_id,
            hold_id=draft.hold_id,
            price=draft.price,
            status=TicketStatus.CONFIRMED,
            barcode=TicketIssuer.generate_barcode(),
            payment_transaction_id=draft.payment_transaction_id,
            issued_at=clock.utcnow(),
        )
        db.add(ticket)
        await db.flush()
        tickets_issued_total.inc()
        return ticket
