from datetime import date
from decimal import Decimal

import pytest

from cinema.services import CatalogService, DashboardService, HoldManager, ReservationCoordinator, TicketService

OWNER = "user:1"


@pytest.mark.asyncio
async def test_empty_dashboard(db):
    stats = await DashboardService.get_stats(db)

    assert stats["total_users"] == 0
    assert stats["total_tickets"] == 0
    assert stats["total_revenue"] == Decimal("0.00")
    assert stats["tickets_by_genre"] == []
    assert stats["recent_tickets"] == []


@pytest.mark.asyncio
async def test_dashboard_totals(db, user, showtime, seats, gateway, card):
    archived = await CatalogService.create_movie(
        db, {"title": "Old Reel", "genre": "Drama", "duration_minutes": 95, "release_date": date(2001, 5, 4)}
    )
    await CatalogService.deactivate_movie(db, archived.id)

    hold = await HoldManager.place_hold(db, showtime.id, [seats["A-1"].id, seats["A-2"].id, seats["A-3"].id], OWNER)
    tickets = await ReservationCoordinator.confirm(db, hold.id, OWNER, card, gateway)
    await TicketService.cancel_ticket(db, tickets[0].id, OWNER)

    stats = await DashboardService.get_stats(db)

    assert stats["total_users"] == 1
    assert stats["total_movies"] == 2
    assert stats["total_tickets"] == 3
    assert stats["total_revenue"] == Decimal("20.00")
    assert stats["movies_by_genre"] == [{"genre": "Science Fiction", "count": 1}]
    assert stats["tickets_by_genre"] == [{"genre": "Science Fiction", "count": 2}]
    assert len(stats["recent_tickets"]) == 3
