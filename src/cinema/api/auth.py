"""Authentication endpoints"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.api.deps import ADMIN, USER, Principal, client_ip, get_audit_log, require_roles
from cinema.core.config import settings
from cinema.core.database import get_db
from cinema.core.security import create_access_token
from cinema.middleware.rate_limiter import limiter
from cinema.schemas import LoginRequest, PasswordChange, ProfileUpdate, Token, UserRegister, UserResponse
from cinema.services import ActionLogService, UserService

router = APIRouter()


@router.post("/auth/register", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
async def register(request: Request, user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    return await UserService.register(
        db,
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
    )


@router.post("/auth/token", response_model=Token)
@limiter.limit("10/minute")
async def login(request: Request, credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    user = await UserService.authenticate(db, credentials.email, credentials.password)
    return Token(
        access_token=create_access_token(user.id, user.role.value),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/auth/me", response_model=UserResponse)
async def me(
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_user(db, principal.user_id)


@router.put("/auth/me", response_model=UserResponse)
async def update_me(
    request: Request,
    profile: ProfileUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    changes = profile.model_dump(exclude_unset=True)
    user = await UserService.update_profile(db, principal.user_id, changes)
    background_tasks.add_task(
        audit.log_action, principal.actor, "Update", "User", principal.user_id,
        ",".join(sorted(changes)), client_ip(request),
    )
    return user


@router.post("/auth/me/password", status_code=204)
@limiter.limit("5/minute")
async def change_password(
    request: Request,
    passwords: PasswordChange,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    audit: ActionLogService = Depends(get_audit_log),
    db: AsyncSession = Depends(get_db),
):
    await UserService.change_password(db, principal.user_id, passwords.current_password, passwords.new_password)
    background_tasks.add_task(
        audit.log_action, principal.actor, "Update", "User", principal.user_id, "password", client_ip(request),
    )
    return Response(status_code=204)
