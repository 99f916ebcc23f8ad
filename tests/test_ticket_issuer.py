import re
from decimal import Decimal

import pytest

from cinema.core.database import atomic
from cinema.models import TicketStatus
from cinema.services import TicketDraft, TicketIssueError, TicketIssuer


def draft(showtime_id, seat_id):
    return TicketDraft(owner_token="user:1", showtime_id=showtime_id, seat_id=seat_id, price=Decimal("10.00"), user_id=None)


def test_ticket_number_format():
    number = TicketIssuer.generate_ticket_number()

    assert re.fullmatch(r"TKT-20300101-[0-9A-F]{8}", number)


def test_barcode_is_twenty_upper_hex_chars():
    barcode = TicketIssuer.generate_barcode()

    assert re.fullmatch(r"[0-9A-F]{20}", barcode)
    assert barcode != TicketIssuer.generate_barcode()


@pytest.mark.asyncio
async def test_issue_creates_confirmed_ticket(db, showtime, seats):
    async with atomic(db):
        ticket = await TicketIssuer.issue(
            db,
            TicketDraft(
                owner_token="user:1",
                showtime_id=showtime.id,
                seat_id=seats["A-1"].id,
                price=Decimal("10.00"),
            ),
        )

    assert ticket.id is not None
    assert ticket.status == TicketStatus.CONFIRMED
    assert ticket.issued_at is not None


@pytest.mark.asyncio
async def test_issue_retries_on_number_collision(db, showtime, seats, monkeypatch):
    numbers = iter(["TKT-20300101-AAAAAAAA", "TKT-20300101-AAAAAAAA", "TKT-20300101-BBBBBBBB"])
    monkeypatch.setattr(TicketIssuer, "generate_ticket_number", staticmethod(lambda: next(numbers)))

    async with atomic(db):
        first = await TicketIssuer.issue(db, draft(showtime.id, seats["A-1"].id))
        second = await TicketIssuer.issue(db, draft(showtime.id, seats["A-2"].id))

    assert first.ticket_number == "TKT-20300101-AAAAAAAA"
    assert second.ticket_number == "TKT-20300101-BBBBBBBB"


@pytest.mark.asyncio
async def test_issue_gives_up_after_max_attempts(db, showtime, seats, monkeypatch):
    monkeypatch.setattr(TicketIssuer, "generate_ticket_number", staticmethod(lambda: "TKT-20300101-AAAAAAAA"))
    async with atomic(db):
        await TicketIssuer.issue(db, draft(showtime.id, seats["A-1"].id))

    with pytest.raises(TicketIssueError):
        async with atomic(db):
            await TicketIssuer.issue(db, draft(showtime.id, seats["A-2"].id))
