"""
Reservation Coordinator - turns a live hold into confirmed tickets

Flow:
1. Validate the hold is ACTIVE, unexpired and owned by the caller
2. Pre-authorize the payment (no capture yet)
3. In one transaction: HELD -> BOOKED for every seat, hold -> CONFIRMED,
   one ticket per seat, seat bound to its ticket
4. Capture the payment after commit; void it if the transaction failed

Either every seat becomes a ticket or none does.
"""
import asyncio
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.core.config import settings
from cinema.core.database import atomic
from cinema.core.metrics import (
    reservation_confirmation_duration_seconds,
    reservations_confirmed_total,
    reservations_failed_total,
    track_time,
)
from cinema.models import HoldStatus, SeatState, SeatStatus, Ticket
from cinema.services.errors import (
    ConflictError,
    HoldExpiredError,
    NotOwnerError,
    HoldNotFoundError,
    PaymentDeclinedError,
    ReservationRaceLostError,
)
from cinema.services.expiry_worker import ExpirySweeper
from cinema.services.hold_manager import load_owned_hold
from cinema.services.payment import CardDetails, PaymentAuthorization, PaymentGateway
from cinema.services.seat_inventory import SeatInventoryStore, publish_seat_change
from cinema.services.ticket_issuer import TicketDraft, TicketIssuer

logger = logging.getLogger(__name__)


async def _authorize(gateway: PaymentGateway, amount, card: CardDetails) -> PaymentAuthorization:
    try:
        authorization = await asyncio.wait_for(
            gateway.authorize(amount, card),
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        raise PaymentDeclinedError("Payment authorization timed out")
    except Exception as e:
        logger.warning(f"Payment authorization failed: {e}")
        raise PaymentDeclinedError("Payment gateway error")

    if not authorization.approved:
        raise PaymentDeclinedError(authorization.reason)
    return authorization


async def _void(gateway: PaymentGateway, transaction_id: str):
    try:
        await gateway.void(transaction_id)
        logger.info(f"Voided authorization {transaction_id}")
    except Exception:
        logger.exception(f"Failed to void authorization {transaction_id}")


class ReservationCoordinator:
    """Service for confirming holds into tickets"""

    @staticmethod
    @track_time(reservation_confirmation_duration_seconds)
    async def confirm(
        db: AsyncSession,
        hold_id: int,
        owner_token: str,
        card: CardDetails,
        gateway: PaymentGateway,
        user_id: Optional[int] = None,
        ticket_owner_token: Optional[str] = None,
    ) -> List[Ticket]:
        """
        Confirm a hold and return one ticket per held seat.

        A declined payment leaves the hold untouched, so the caller may retry
        with another card until the hold expires. Tickets belong to
        ``ticket_owner_token`` when given, else to the hold owner.
        """
        log_context = {"owner_token": owner_token, "hold_id": hold_id}

        # 1. Validate hold
        try:
            hold = await load_owned_hold(db, hold_id, owner_token)
        except HoldNotFoundError:
            reservations_failed_total.labels(reason="hold_not_found").inc()
            raise
        except NotOwnerError:
            reservations_failed_total.labels(reason="not_owner").inc()
            raise

        if not hold.is_live():
            reservations_failed_total.labels(reason="hold_expired").inc()
            if hold.status == HoldStatus.ACTIVE:
                await ExpirySweeper.sweep_showtime(db, hold.showtime_id)
            raise HoldExpiredError(f"Hold {hold_id} has expired")

        # Snapshot before any rollback can expire the instance
        showtime_id = hold.showtime_id
        version = hold.version
        expires_at = hold.expires_at
        seat_prices = [(hs.seat_id, hs.price_at_hold) for hs in hold.hold_seats]
        amount = hold.total_amount

        # Don't keep a transaction open across the payment call
        await db.commit()

        # 2. Pre-authorize payment
        try:
            authorization = await _authorize(gateway, amount, card)
        except PaymentDeclinedError as e:
            reservations_failed_total.labels(reason="payment_declined").inc()
            logger.info(f"Payment declined for hold {hold_id}: {e.reason}", extra=log_context)
            raise
        transaction_id = authorization.transaction_id

        # 3 + 4. Settle seats and issue tickets atomically
        try:
            async with atomic(db):
                now = clock.utcnow()
                if now >= expires_at:
                    raise HoldExpiredError(f"Hold {hold_id} expired during payment")

                held = SeatState.held(hold_id, expires_at)
                for seat_id, _ in seat_prices:
                    await SeatInventoryStore.compare_and_set_status(
                        db, seat_id, held, SeatState.booked(hold_id)
                    )

                await SeatInventoryStore.update_hold(
                    db,
                    hold_id,
                    version,
                    status=HoldStatus.CONFIRMED,
                    closed_at=now,
                )

                tickets = []
                for seat_id, price in seat_prices:
                    ticket = await TicketIssuer.issue(
                        db,
                        TicketDraft(
                            owner_token=ticket_owner_token or owner_token,
                            user_id=user_id,
                            showtime_id=showtime_id,
                            seat_id=seat_id,
                            hold_id=hold_id,
                            price=price,
                            payment_transaction_id=transaction_id,
                        ),
                    )
                    await SeatInventoryStore.compare_and_set_status(
                        db,
                        seat_id,
                        SeatState.booked(hold_id),
                        SeatState.booked(hold_id, ticket.id),
                    )
                    tickets.append(ticket)
        except HoldExpiredError:
            await _void(gateway, transaction_id)
            reservations_failed_total.labels(reason="hold_expired").inc()
            await ExpirySweeper.sweep_showtime(db, showtime_id)
            raise
        except (ConflictError, IntegrityError) as e:
            await _void(gateway, transaction_id)
            reservations_failed_total.labels(reason="race_lost").inc()
            logger.warning(f"Confirmation of hold {hold_id} lost a race: {e}", extra=log_context)
            raise ReservationRaceLostError(
                f"Seats of hold {hold_id} were taken before confirmation completed"
            ) from e
        except Exception:
            await _void(gateway, transaction_id)
            reservations_failed_total.labels(reason="error").inc()
            raise

        # Capture failures leave confirmed tickets; the authorization is reconciled offline
        try:
            await gateway.capture(transaction_id)
        except Exception:
            logger.exception(f"Failed to capture payment {transaction_id} for hold {hold_id}")

        reservations_confirmed_total.inc()
        logger.info(
            f"Hold {hold_id} confirmed: {len(tickets)} tickets issued",
            extra={**log_context, "showtime_id": showtime_id},
        )
        await publish_seat_change(
            showtime_id,
            [seat_id for seat_id, _ in seat_prices],
            SeatStatus.BOOKED,
            hold_id,
        )
        return tickets
