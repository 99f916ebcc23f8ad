"""Hold API endpoints - place, poll, renew, release and confirm holds"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.api.deps import (
    ADMIN,
    USER,
    Principal,
    client_ip,
    get_audit_log,
    get_payment,
    require_owner,
    require_roles,
)
from cinema.core.database import get_db
from cinema.middleware.rate_limiter import limiter
from cinema.schemas import ConfirmationResponse, HoldConfirm, HoldCreate, HoldResponse, TicketResponse
from cinema.services import ActionLogService, CardDetails, HoldManager, PaymentGateway, ReservationCoordinator
from cinema.services.hold_manager import load_hold
from cinema.services.idempotency import idempotency_service

router = APIRouter()


@router.post("/holds", response_model=HoldResponse, status_code=201)
@limiter.limit("20/minute")
async def place_hold(
    request: Request,
    hold_data: HoldCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_owner),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """
    Hold seats of a showtime for HOLD_DURATION_MINUTES

    All requested seats are held or none is. A 409 response lists every
    requested seat that is not available.
    """
    hold = await HoldManager.place_hold(
        db=db,
        showtime_id=hold_data.showtime_id,
        seat_ids=hold_data.seat_ids,
        owner_token=principal.owner_token,
    )
    background_tasks.add_task(
        audit.log_action, principal.actor, "Create", "Hold", hold.id,
        f"seats={sorted(hold_data.seat_ids)}", client_ip(request),
    )
    return HoldResponse.from_hold(hold)


@router.get("/holds/{hold_id}", response_model=HoldResponse)
async def get_hold(
    hold_id: int,
    principal: Principal = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    hold = await HoldManager.get_hold(db, hold_id, principal.owner_token)
    return HoldResponse.from_hold(hold)


@router.post("/holds/{hold_id}/renew", response_model=HoldResponse)
@limiter.limit("20/minute")
async def renew_hold(
    request: Request,
    hold_id: int,
    principal: Principal = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    hold = await HoldManager.renew_hold(db, hold_id, principal.owner_token)
    return HoldResponse.from_hold(hold)


@router.delete("/holds/{hold_id}", status_code=204)
async def release_hold(
    request: Request,
    hold_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_owner),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Release a hold; releasing an already closed hold is a no-op"""
    await HoldManager.release_hold(db, hold_id, principal.owner_token)
    background_tasks.add_task(audit.log_action, principal.actor, "Delete", "Hold", hold_id, None, client_ip(request))
    return Response(status_code=204)


@router.post("/holds/{hold_id}/confirm", response_model=ConfirmationResponse)
@limiter.limit("10/minute")
async def confirm_hold(
    request: Request,
    hold_id: int,
    confirm_data: HoldConfirm,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None, alias="X-Idempotency-Key", max_length=128),
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    gateway: PaymentGateway = Depends(get_payment),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """
    Pay for a hold and receive one ticket per seat

    Requires a signed-in user. A hold placed anonymously under the caller's
    X-Session-Id may be confirmed too; the tickets then belong to the user.

    Idempotent with X-Idempotency-Key: a retry returns the first result
    instead of charging again.
    """
    owner_token = principal.owner_token
    if principal.session_token:
        hold = await load_hold(db, hold_id)
        if hold and hold.owner_token == principal.session_token:
            owner_token = principal.session_token

    key = None
    if idempotency_key:
        key = idempotency_service.make_key(principal.owner_token, f"confirm:{hold_id}", idempotency_key)
        existing_result = await idempotency_service.check_operation(key)
        if existing_result:
            return ConfirmationResponse(**existing_result)
        if not await idempotency_service.lock_operation(key):
            raise HTTPException(status_code=409, detail="Confirmation already in progress")

    payment = confirm_data.payment
    card = CardDetails(
        number=payment.card_number,
        expiry=payment.expiry,
        cvc=payment.cvc,
        name_on_card=payment.name_on_card,
        country=payment.country,
    )

    try:
        tickets = await ReservationCoordinator.confirm(
            db=db,
            hold_id=hold_id,
            owner_token=owner_token,
            card=card,
            gateway=gateway,
            user_id=principal.user_id,
            ticket_owner_token=principal.owner_token,
        )
        response = ConfirmationResponse(
            hold_id=hold_id,
            total_amount=sum((ticket.price for ticket in tickets), Decimal("0")),
            tickets=[TicketResponse.model_validate(ticket) for ticket in tickets],
        )
        if key:
            await idempotency_service.store_result(key, response.model_dump(mode="json"))
    finally:
        if key:
            await idempotency_service.release_lock(key)

    background_tasks.add_task(
        audit.log_action, principal.actor, "Confirm", "Hold", hold_id,
        ",".join(ticket.ticket_number for ticket in tickets), client_ip(request),
    )
    return response
