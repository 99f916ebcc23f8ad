import pytest

from cinema.models import SeatStatus, TicketStatus
from cinema.services import (
    HoldManager,
    InvalidTicketTransitionError,
    NotFoundError,
    NotOwnerError,
    ReservationCoordinator,
    SeatInventoryStore,
    TicketService,
)

OWNER = "user:1"


async def book(db, showtime, seat_ids, gateway, card, owner=OWNER):
    hold = await HoldManager.place_hold(db, showtime.id, seat_ids, owner)
    return await ReservationCoordinator.confirm(db, hold.id, owner, card, gateway)


@pytest.mark.asyncio
async def test_cancel_frees_seat_for_rebooking(db, showtime, seats, gateway, card):
    seat_id = seats["A-1"].id
    [ticket] = await book(db, showtime, [seat_id], gateway, card)

    cancelled = await TicketService.cancel_ticket(db, ticket.id, OWNER)

    assert cancelled.status == TicketStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    [seat] = await SeatInventoryStore.get_seats_by_ids(db, showtime.id, [seat_id])
    assert seat.status == SeatStatus.AVAILABLE
    assert seat.ticket_id is None

    # A cancelled ticket does not count against the one-live-ticket-per-seat rule
    [new_ticket] = await book(db, showtime, [seat_id], gateway, card, owner="user:2")
    assert new_ticket.seat_id == seat_id


@pytest.mark.asyncio
async def test_owner_cannot_cancel_after_showtime_started(db, showtime, seats, gateway, card, frozen_clock):
    [ticket] = await book(db, showtime, [seats["A-2"].id], gateway, card)
    frozen_clock.advance(days=1, minutes=1)

    with pytest.raises(InvalidTicketTransitionError):
        await TicketService.cancel_ticket(db, ticket.id, OWNER)

    cancelled = await TicketService.cancel_ticket(db, ticket.id, "user:99", is_admin=True)
    assert cancelled.status == TicketStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_checks_owner(db, showtime, seats, gateway, card):
    [ticket] = await book(db, showtime, [seats["A-3"].id], gateway, card)

    with pytest.raises(NotOwnerError):
        await TicketService.cancel_ticket(db, ticket.id, "user:2")


@pytest.mark.asyncio
async def test_mark_used_then_no_further_transitions(db, showtime, seats, gateway, card):
    [ticket] = await book(db, showtime, [seats["B-1"].id], gateway, card)

    used = await TicketService.mark_used(db, ticket.id)
    assert used.status == TicketStatus.USED
    assert used.validated_at is not None

    with pytest.raises(InvalidTicketTransitionError):
        await TicketService.mark_used(db, ticket.id)
    with pytest.raises(InvalidTicketTransitionError):
        await TicketService.cancel_ticket(db, ticket.id, OWNER, is_admin=True)

    [seat] = await SeatInventoryStore.get_seats_by_ids(db, showtime.id, [seats["B-1"].id])
    assert seat.status == SeatStatus.BOOKED


@pytest.mark.asyncio
async def test_list_owner_tickets_newest_first(db, showtime, seats, gateway, card, frozen_clock):
    [older] = await book(db, showtime, [seats["C-1"].id], gateway, card)
    frozen_clock.advance(minutes=1)
    [newer] = await book(db, showtime, [seats["C-2"].id], gateway, card)
    await book(db, showtime, [seats["C-3"].id], gateway, card, owner="user:2")

    tickets = await TicketService.list_owner_tickets(db, OWNER)

    assert [ticket.id for ticket in tickets] == [newer.id, older.id]
    with pytest.raises(NotOwnerError):
        await TicketService.get_owner_ticket(db, older.id, "user:2")
    with pytest.raises(NotFoundError):
        await TicketService.get_ticket(db, 9999)


@pytest.mark.asyncio
async def test_search_by_number_title_and_status(db, showtime, seats, gateway, card):
    tickets = await book(db, showtime, [seats["D-1"].id, seats["D-2"].id], gateway, card)
    await TicketService.mark_used(db, tickets[0].id)

    by_title, total = await TicketService.search_tickets(db, search="deep")
    assert total == 2

    by_number, total = await TicketService.search_tickets(db, search=tickets[1].ticket_number)
    assert [ticket.id for ticket in by_number] == [tickets[1].id]

    used, total = await TicketService.search_tickets(db, status=TicketStatus.USED)
    assert total == 1

    page, total = await TicketService.search_tickets(db, page=2, page_size=1)
    assert total == 2
    assert len(page) == 1
