"""
Hold Manager - grants, renews and releases time-boxed seat holds
"""
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.core.config import settings
from cinema.core.database import atomic
from cinema.core.metrics import (
    hold_placement_duration_seconds,
    holds_placed_total,
    holds_rejected_total,
    holds_released_total,
    track_time,
)
from cinema.models import Hold, HoldSeat, HoldStatus, SeatState, SeatStatus, Showtime
from cinema.services.errors import (
    BookingServiceError,
    ConflictError,
    HoldConflictError,
    HoldExpiredError,
    HoldNotFoundError,
    NotOwnerError,
    SeatUnavailableError,
    ShowtimeNotFoundError,
    TooManyActiveHoldsError,
)
from cinema.services.expiry_worker import ExpirySweeper
from cinema.services.seat_inventory import SeatInventoryStore, publish_seat_change

logger = logging.getLogger(__name__)


async def load_hold(db: AsyncSession, hold_id: int) -> Optional[Hold]:
    """Fresh read of a hold and its seats, bypassing the identity map"""
    query = (
        select(Hold)
        .where(Hold.id == hold_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def load_owned_hold(db: AsyncSession, hold_id: int, owner_token: str) -> Hold:
    hold = await load_hold(db, hold_id)
    if not hold:
        raise HoldNotFoundError(f"Hold {hold_id} not found")
    if hold.owner_token != owner_token:
        raise NotOwnerError(f"Hold {hold_id} belongs to another owner")
    return hold


def _validate_seat_ids(seat_ids: List[int]) -> None:
    if len(seat_ids) == 0:
        raise BookingServiceError("At least one seat must be selected")

    if len(seat_ids) > settings.MAX_SEATS_PER_HOLD:
        raise BookingServiceError(
            f"Cannot hold more than {settings.MAX_SEATS_PER_HOLD} seats at once"
        )

    if len(set(seat_ids)) != len(seat_ids):
        raise BookingServiceError("Duplicate seat ids in request")


class HoldManager:
    """Service for placing and managing seat holds"""

    @staticmethod
    @track_time(hold_placement_duration_seconds)
    async def place_hold(
        db: AsyncSession,
        showtime_id: int,
        seat_ids: List[int],
        owner_token: str,
        hold_duration: Optional[timedelta] = None,
    ) -> Hold:
        """
        Hold the requested seats for ``owner_token``.

        All-or-nothing: the hold row and every seat transition commit in one
        transaction. Any seat that is not AVAILABLE (or not part of the
        showtime) is named in the SeatUnavailableError.

        Cache invalidation:
        - Deletes showtime:{showtime_id}:seats
        """
        _validate_seat_ids(seat_ids)
        hold_duration = hold_duration or timedelta(minutes=settings.HOLD_DURATION_MINUTES)
        log_context = {"owner_token": owner_token, "showtime_id": showtime_id}

        # Seats of holds that already lapsed must be placeable again
        await ExpirySweeper.sweep_showtime(db, showtime_id)

        async with atomic(db):
            now = clock.utcnow()

            # 1. Verify showtime exists, is active and has not started
            showtime_query = select(Showtime).where(
                Showtime.id == showtime_id,
                Showtime.is_active == True,  # noqa: E712
            )
            showtime = (await db.execute(showtime_query)).scalar_one_or_none()
            if not showtime:
                raise ShowtimeNotFoundError(f"Showtime {showtime_id} not found or inactive")
            if showtime.starts_at <= now:
                raise BookingServiceError(f"Showtime {showtime_id} has already started")

            # 2. Check owner's active holds
            active_holds_query = select(func.count(Hold.id)).where(
                Hold.owner_token == owner_token,
                Hold.status == HoldStatus.ACTIVE,
                Hold.expires_at > now,
            )
            active_holds_count = (await db.execute(active_holds_query)).scalar()
            if active_holds_count >= settings.MAX_ACTIVE_HOLDS_PER_OWNER:
                holds_rejected_total.labels(reason="too_many_holds").inc()
                raise TooManyActiveHoldsError(
                    f"Cannot have more than {settings.MAX_ACTIVE_HOLDS_PER_OWNER} active holds"
                )

            # 3. Every requested seat must exist in this showtime and be available
            seats = await SeatInventoryStore.get_seats_by_ids(db, showtime_id, seat_ids)
            available_ids = {seat.id for seat in seats if seat.status == SeatStatus.AVAILABLE}
            unavailable_ids = set(seat_ids) - available_ids
            if unavailable_ids:
                holds_rejected_total.labels(reason="seat_unavailable").inc()
                raise SeatUnavailableError(unavailable_ids)

            # 4. Create the hold with a price snapshot per seat
            expires_at = now + hold_duration
            hold = Hold(
                showtime_id=showtime_id,
                owner_token=owner_token,
                status=HoldStatus.ACTIVE,
                expires_at=expires_at,
                version=1,
                created_at=now,
                hold_seats=[
                    HoldSeat(seat_id=seat.id, price_at_hold=showtime.price)
                    for seat in seats
                ],
            )
            db.add(hold)
            await db.flush()

            # 5. Flip seats in ascending id order; a lost race aborts the batch
            for seat in seats:
                try:
                    await SeatInventoryStore.compare_and_set_status(
                        db,
                        seat.id,
                        SeatState.available(),
                        SeatState.held(hold.id, expires_at),
                    )
                except ConflictError:
                    holds_rejected_total.labels(reason="seat_unavailable").inc()
                    raise SeatUnavailableError([seat.id])

            hold_id = hold.id

        holds_placed_total.inc()
        logger.info(
            f"Hold {hold_id} placed on {len(seat_ids)} seats",
            extra={**log_context, "hold_id": hold_id},
        )
        await publish_seat_change(showtime_id, sorted(seat_ids), SeatStatus.HELD, hold_id)
        return hold

    @staticmethod
    async def get_hold(db: AsyncSession, hold_id: int, owner_token: str) -> Hold:
        """Current state of an owner's hold; a lapsed hold is swept first"""
        hold = await load_owned_hold(db, hold_id, owner_token)
        if hold.status == HoldStatus.ACTIVE and hold.is_expired():
            await ExpirySweeper.sweep_showtime(db, hold.showtime_id)
            hold = await load_hold(db, hold_id)
        return hold

    @staticmethod
    async def release_hold(db: AsyncSession, hold_id: int, owner_token: str) -> None:
        """
        Give the seats back before the deadline.

        Idempotent: releasing a hold that is already released, expired or
        confirmed does nothing.
        """
        hold = await load_owned_hold(db, hold_id, owner_token)
        if hold.status != HoldStatus.ACTIVE:
            logger.info(f"Hold {hold_id} already {hold.status.value}, nothing to release")
            return

        showtime_id = hold.showtime_id
        held = SeatState.held(hold.id, hold.expires_at)
        released_ids = []

        try:
            async with atomic(db):
                for seat_id in hold.seat_ids:
                    try:
                        await SeatInventoryStore.compare_and_set_status(
                            db, seat_id, held, SeatState.available()
                        )
                    except ConflictError:
                        continue
                    released_ids.append(seat_id)

                await SeatInventoryStore.update_hold(
                    db,
                    hold_id,
                    hold.version,
                    status=HoldStatus.RELEASED,
                    closed_at=clock.utcnow(),
                )
        except HoldConflictError:
            # Confirmed, expired or renewed in the meantime; seat changes rolled back
            logger.info(f"Hold {hold_id} changed during release, leaving it as is")
            return

        holds_released_total.inc()
        logger.info(
            f"Hold {hold_id} released ({len(released_ids)} seats)",
            extra={"owner_token": owner_token, "showtime_id": showtime_id, "hold_id": hold_id},
        )
        await publish_seat_change(showtime_id, released_ids, SeatStatus.AVAILABLE)

    @staticmethod
    async def renew_hold(
        db: AsyncSession,
        hold_id: int,
        owner_token: str,
        hold_duration: Optional[timedelta] = None,
    ) -> Hold:
        """Push a live hold's deadline to now + hold_duration"""
        hold_duration = hold_duration or timedelta(minutes=settings.HOLD_DURATION_MINUTES)
        hold = await load_owned_hold(db, hold_id, owner_token)
        now = clock.utcnow()

        if not hold.is_live(now):
            if hold.status == HoldStatus.ACTIVE:
                await ExpirySweeper.sweep_showtime(db, hold.showtime_id)
            raise HoldExpiredError(f"Hold {hold_id} has expired")

        old_state = SeatState.held(hold.id, hold.expires_at)
        new_expires_at = now + hold_duration
        new_state = SeatState.held(hold.id, new_expires_at)

        try:
            async with atomic(db):
                for seat_id in hold.seat_ids:
                    await SeatInventoryStore.compare_and_set_status(db, seat_id, old_state, new_state)
                await SeatInventoryStore.update_hold(db, hold_id, hold.version, expires_at=new_expires_at)
        except ConflictError:
            raise HoldExpiredError(f"Hold {hold_id} is no longer active")

        logger.info(f"Hold {hold_id} renewed until {new_expires_at.isoformat()}", extra={"hold_id": hold_id})
        return await load_hold(db, hold_id)
