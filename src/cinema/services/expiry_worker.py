"""
Expiry sweeper: returns seats of expired holds to availability

Runs periodically as a background task and lazily on every seat-map read or
hold placement for a showtime. It only ever uses compare-and-set, so a hold
confirmed in the same instant it would have expired is never reclaimed:
both sides race on the same expected HELD state and exactly one wins.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinema.core import clock
from cinema.core.config import settings
from cinema.core.database import AsyncSessionLocal, atomic
from cinema.core.metrics import holds_expired_total, seats_reclaimed_total
from cinema.models import Hold, HoldStatus, SeatState, SeatStatus
from cinema.services.errors import ConflictError
from cinema.services.seat_inventory import SeatInventoryStore, publish_seat_change

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Seats reclaimed per showtime and holds marked expired by one sweep"""
    reclaimed: Dict[int, List[int]] = field(default_factory=lambda: defaultdict(list))
    expired_hold_ids: List[int] = field(default_factory=list)

    @property
    def seat_count(self) -> int:
        return sum(len(seat_ids) for seat_ids in self.reclaimed.values())


class ExpirySweeper:
    """Reclaims HELD seats whose deadline has passed"""

    @staticmethod
    async def sweep(db: AsyncSession, showtime_id: Optional[int] = None) -> SweepResult:
        """
        Reclaim expired holds, for one showtime or for all of them.

        Seats whose state changed since they were read are skipped; their new
        owner (a confirmation or a renewal) won the race.
        """
        result = SweepResult()
        now = clock.utcnow()

        async with atomic(db):
            seats = await SeatInventoryStore.get_expired_held_seats(db, now, showtime_id)
            for seat in seats:
                try:
                    await SeatInventoryStore.compare_and_set_status(
                        db,
                        seat.id,
                        SeatState.of(seat),
                        SeatState.available(),
                    )
                except ConflictError:
                    continue
                result.reclaimed[seat.showtime_id].append(seat.id)

            holds_query = select(Hold).where(
                Hold.status == HoldStatus.ACTIVE,
                Hold.expires_at <= now,
            )
            if showtime_id is not None:
                holds_query = holds_query.where(Hold.showtime_id == showtime_id)
            expired_holds = (await db.execute(holds_query)).scalars().all()

            for hold in expired_holds:
                try:
                    await SeatInventoryStore.update_hold(
                        db,
                        hold.id,
                        hold.version,
                        status=HoldStatus.EXPIRED,
                        closed_at=now,
                    )
                except ConflictError:
                    continue
                result.expired_hold_ids.append(hold.id)

        if result.expired_hold_ids or result.seat_count:
            holds_expired_total.inc(len(result.expired_hold_ids))
            seats_reclaimed_total.inc(result.seat_count)
            logger.info(
                f"Expired {len(result.expired_hold_ids)} holds, reclaimed {result.seat_count} seats"
            )

        for affected_showtime, seat_ids in result.reclaimed.items():
            await publish_seat_change(affected_showtime, seat_ids, SeatStatus.AVAILABLE)

        return result

    @staticmethod
    async def sweep_showtime(db: AsyncSession, showtime_id: int) -> SweepResult:
        """Lazy variant run before reads and hold placement"""
        return await ExpirySweeper.sweep(db, showtime_id=showtime_id)


class ExpiryWorker:
    """Background worker that sweeps expired holds on a fixed interval"""

    def __init__(
        self,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        interval_seconds: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds or settings.HOLD_EXPIRY_CHECK_INTERVAL_SECONDS
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the background worker"""
        if self.running:
            logger.warning("Expiry worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"Expiry worker started (interval: {self.interval_seconds}s)")

    async def stop(self):
        """Stop the background worker"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("Expiry worker stopped")

    async def run_once(self) -> SweepResult:
        async with self.session_factory() as db:
            return await ExpirySweeper.sweep(db)

    async def _run(self):
        """Main worker loop"""
        while self.running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in expiry worker")
            await asyncio.sleep(self.interval_seconds)


# Global worker instance
expiry_worker = ExpiryWorker()


async def start_expiry_worker():
    """Start the expiry worker"""
    await expiry_worker.start()


async def stop_expiry_worker():
    """Stop the expiry worker"""
    await expiry_worker.stop()
