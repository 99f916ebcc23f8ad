"""
Admin API endpoints - catalog management, ticket desk, users and audit log

Every route requires the ADMIN role and writes an audit entry for changes.
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.api.deps import ADMIN, Principal, client_ip, get_audit_log, require_roles
from cinema.core.database import get_db
from cinema.models import TicketStatus
from cinema.schemas import (
    ActionLogListResponse,
    ActionLogResponse,
    CinemaHallCreate,
    CinemaHallResponse,
    CinemaHallUpdate,
    DashboardResponse,
    MovieCreate,
    MovieResponse,
    MovieUpdate,
    ShowtimeCreate,
    ShowtimeResponse,
    ShowtimeUpdate,
    TicketPageResponse,
    TicketResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from cinema.services import ActionLogService, CatalogService, DashboardService, TicketService, UserService

router = APIRouter(prefix="/admin")

require_admin = require_roles(ADMIN)


def _audit(
    background_tasks: BackgroundTasks,
    audit: ActionLogService,
    request: Request,
    principal: Principal,
    action: str,
    entity_type: str,
    entity_id: int,
    details: Optional[str] = None,
):
    background_tasks.add_task(
        audit.log_action, principal.actor, action, entity_type, entity_id, details, client_ip(request)
    )


# ==================== Dashboard ====================

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.get_stats(db)


# ==================== Movies ====================

@router.post("/movies", response_model=MovieResponse, status_code=201)
async def create_movie(
    request: Request,
    movie_data: MovieCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    movie = await CatalogService.create_movie(db, movie_data.model_dump())
    _audit(background_tasks, audit, request, principal, "Create", "Movie", movie.id, movie.title)
    return movie


@router.put("/movies/{movie_id}", response_model=MovieResponse)
async def update_movie(
    request: Request,
    movie_id: int,
    movie_data: MovieUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    changes = movie_data.model_dump(exclude_unset=True)
    movie = await CatalogService.update_movie(db, movie_id, changes)
    _audit(background_tasks, audit, request, principal, "Update", "Movie", movie_id, ",".join(sorted(changes)))
    return movie


# ==================== Halls ====================

@router.get("/halls", response_model=list[CinemaHallResponse])
async def list_halls(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService.list_halls(db, include_inactive=True)


@router.post("/halls", response_model=CinemaHallResponse, status_code=201)
async def create_hall(
    request: Request,
    hall_data: CinemaHallCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    hall = await CatalogService.create_hall(db, hall_data.model_dump())
    _audit(background_tasks, audit, request, principal, "Create", "CinemaHall", hall.id, hall.name)
    return hall


@router.put("/halls/{hall_id}", response_model=CinemaHallResponse)
async def update_hall(
    request: Request,
    hall_id: int,
    hall_data: CinemaHallUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    changes = hall_data.model_dump(exclude_unset=True)
    hall = await CatalogService.update_hall(db, hall_id, changes)
    _audit(background_tasks, audit, request, principal, "Update", "CinemaHall", hall_id, ",".join(sorted(changes)))
    return hall


# ==================== Showtimes ====================

@router.post("/showtimes", response_model=ShowtimeResponse, status_code=201)
async def create_showtime(
    request: Request,
    showtime_data: ShowtimeCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Create a showtime; its seats are generated from the hall geometry"""
    showtime = await CatalogService.create_showtime(db, showtime_data.model_dump())
    _audit(background_tasks, audit, request, principal, "Create", "Showtime", showtime.id)
    return showtime


@router.put("/showtimes/{showtime_id}", response_model=ShowtimeResponse)
async def update_showtime(
    request: Request,
    showtime_id: int,
    showtime_data: ShowtimeUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Price and hall are rejected with 400 once any seat is held or booked"""
    changes = showtime_data.model_dump(exclude_unset=True)
    showtime = await CatalogService.update_showtime(db, showtime_id, changes)
    _audit(background_tasks, audit, request, principal, "Update", "Showtime", showtime_id, ",".join(sorted(changes)))
    return showtime


# ==================== Tickets ====================

@router.get("/tickets", response_model=TicketPageResponse)
async def search_tickets(
    search: Optional[str] = Query(None, max_length=200, description="Ticket number or movie title"),
    status: Optional[TicketStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    tickets, total = await TicketService.search_tickets(
        db, search=search, status=status, page=page, page_size=page_size
    )
    return TicketPageResponse(
        tickets=[TicketResponse.model_validate(ticket) for ticket in tickets],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/tickets/{ticket_id}/use", response_model=TicketResponse)
async def use_ticket(
    request: Request,
    ticket_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Door scan: CONFIRMED -> USED"""
    ticket = await TicketService.mark_used(db, ticket_id)
    _audit(background_tasks, audit, request, principal, "Update", "Ticket", ticket_id, "USED")
    return ticket


@router.post("/tickets/by-number/{ticket_number}/use", response_model=TicketResponse)
async def use_ticket_by_number(
    request: Request,
    ticket_number: str,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    """Door scan by the number printed on the ticket"""
    ticket = await TicketService.get_by_number(db, ticket_number)
    ticket = await TicketService.mark_used(db, ticket.id)
    _audit(background_tasks, audit, request, principal, "Update", "Ticket", ticket.id, "USED")
    return ticket

@router.post("/tickets/{ticket_id}/cancel", response_model=TicketResponse)
async def cancel_ticket(
    request: Request,
    ticket_id: int,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    ticket = await TicketService.cancel_ticket(db, ticket_id, principal.owner_token, is_admin=True)
    _audit(background_tasks, audit, request, principal, "Cancel", "Ticket", ticket_id, ticket.ticket_number)
    return ticket


# ==================== Users ====================

@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users, total = await UserService.list_users(db, page=page, page_size=page_size)
    return UserListResponse(users=[UserResponse.model_validate(user) for user in users], total=total)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    request: Request,
    user_id: int,
    user_data: UserUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    changes = user_data.model_dump(exclude_unset=True)
    user = await UserService.update_user(db, user_id, changes)
    _audit(background_tasks, audit, request, principal, "Update", "User", user_id, ",".join(sorted(changes)))
    return user


# ==================== Audit log ====================

@router.get("/action-logs", response_model=ActionLogListResponse)
async def list_action_logs(
    user_id: Optional[str] = Query(None, description="Actor, e.g. user:12"),
    entity_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(require_admin),
    audit: ActionLogService = Depends(get_audit_log),
):
    logs, total = await audit.list_logs(page=page, page_size=page_size, user_id=user_id, entity_type=entity_type)
    return ActionLogListResponse(
        logs=[ActionLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size,
    )
