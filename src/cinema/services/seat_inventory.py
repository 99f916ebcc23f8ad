"""
Seat Inventory Store - the single source of truth for seat status

compare_and_set_status is the only mutation path for seat status. It is a
single conditional UPDATE, so the database makes it atomic per seat row and
concurrent workers never overwrite each other's transitions.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.models import Hold, HoldStatus, Seat, SeatState, SeatStatus
from cinema.services.cache_service import CacheService
from cinema.services.errors import HoldConflictError, SeatConflictError
from cinema.services.websocket_manager import manager

logger = logging.getLogger(__name__)


def _same(column, value):
    return column.is_(None) if value is None else column == value


def _matches(expected: SeatState) -> list:
    criteria = [
        Seat.status == expected.status,
        _same(Seat.hold_id, expected.hold_id),
        _same(Seat.ticket_id, expected.ticket_id),
    ]
    # A renewed hold changes the deadline, so HELD is matched on it too
    if expected.status == SeatStatus.HELD:
        criteria.append(_same(Seat.hold_expires_at, expected.hold_expires_at))
    return criteria


class SeatInventoryStore:
    """Reads and conditional writes over seat rows"""

    @staticmethod
    async def get_seats(db: AsyncSession, showtime_id: int) -> List[Seat]:
        """All seats of a showtime ordered by row and number"""
        query = (
            select(Seat)
            .where(Seat.showtime_id == showtime_id)
            .order_by(Seat.row, Seat.number)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_seats_by_ids(db: AsyncSession, showtime_id: int, seat_ids: Iterable[int]) -> List[Seat]:
        """Requested seats that belong to the showtime, ordered by id"""
        query = (
            select(Seat)
            .where(Seat.showtime_id == showtime_id, Seat.id.in_(list(seat_ids)))
            .order_by(Seat.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_expired_held_seats(
        db: AsyncSession,
        now,
        showtime_id: Optional[int] = None,
    ) -> List[Seat]:
        query = (
            select(Seat)
            .where(Seat.status == SeatStatus.HELD, Seat.hold_expires_at <= now)
            .order_by(Seat.id)
            .execution_options(populate_existing=True)
        )
        if showtime_id is not None:
            query = query.where(Seat.showtime_id == showtime_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def compare_and_set_status(
        db: AsyncSession,
        seat_id: int,
        expected: SeatState,
        new: SeatState,
    ) -> None:
        """
        Move a seat from ``expected`` to ``new`` or raise SeatConflictError.

        Never blind-overwrites: zero matched rows means another actor got
        there first, and the caller must retry or abort.
        """
        stmt = (
            update(Seat)
            .where(Seat.id == seat_id, *_matches(expected))
            .values(
                status=new.status,
                hold_id=new.hold_id,
                hold_expires_at=new.hold_expires_at,
                ticket_id=new.ticket_id,
                version=Seat.version + 1,
                updated_at=clock.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            logger.info(
                f"Seat {seat_id} CAS conflict: expected {expected.status.value}",
                extra={"hold_id": expected.hold_id},
            )
            raise SeatConflictError(seat_id)

    @staticmethod
    async def update_hold(db: AsyncSession, hold_id: int, expected_version: int, **values) -> None:
        """
        Versioned update of an ACTIVE hold (status change or new deadline).

        Raises HoldConflictError if the hold left ACTIVE or was renewed since
        ``expected_version`` was read.
        """
        stmt = (
            update(Hold)
            .where(
                Hold.id == hold_id,
                Hold.status == HoldStatus.ACTIVE,
                Hold.version == expected_version,
            )
            .values(version=Hold.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            raise HoldConflictError(hold_id)


async def publish_seat_change(showtime_id: int, seat_ids: list, status: SeatStatus, hold_id: int = None):
    """Invalidate the cached seat map and push the change to live clients"""
    if not seat_ids:
        return
    await CacheService.invalidate_showtime_seats(showtime_id)
    try:
        await manager.broadcast_seat_update(
            showtime_id=showtime_id,
            seat_ids=list(seat_ids),
            status=status.value,
            hold_id=hold_id,
        )
    except Exception as e:
        logger.warning(f"WebSocket broadcast failed for showtime {showtime_id}: {e}")
