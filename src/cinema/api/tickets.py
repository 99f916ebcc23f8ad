"""Ticket API endpoints for the signed-in owner"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.api.deps import ADMIN, USER, Principal, client_ip, get_audit_log, require_roles
from cinema.core.database import get_db
from cinema.schemas import TicketListResponse, TicketResponse
from cinema.services import ActionLogService, TicketService

router = APIRouter()


@router.get("/tickets", response_model=TicketListResponse)
async def list_my_tickets(
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Caller's tickets, newest first"""
    tickets = await TicketService.list_owner_tickets(db, principal.owner_token)
    return TicketListResponse(
        tickets=[TicketResponse.model_validate(ticket) for ticket in tickets],
        total=len(tickets),
    )


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_my_ticket(
    ticket_id: int,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await TicketService.get_owner_ticket(db, ticket_id, principal.owner_token)


@router.post("/tickets/{ticket_id}/cancel", response_model=TicketResponse)
async def cancel_my_ticket(
    request: Request,
    ticket_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Cancel one of the caller's tickets before the showtime starts"""
    ticket = await TicketService.cancel_ticket(db, ticket_id, principal.owner_token)
    background_tasks.add_task(
        audit.log_action, principal.actor, "Cancel", "Ticket", ticket_id, ticket.ticket_number, client_ip(request)
    )
    return ticket
