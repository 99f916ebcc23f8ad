"""
Request dependencies: caller identity, role checks and collaborators
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.database import get_db
from cinema.core.security import decode_access_token
from cinema.models import User
from cinema.services.action_log_service import ActionLogService, audit_log
from cinema.services.payment import PaymentGateway, get_payment_gateway

ADMIN = "ADMIN"
USER = "USER"
ANONYMOUS = "ANONYMOUS"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Who is calling: an authenticated user or an anonymous browser session"""
    role: str
    user_id: Optional[int] = None
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def session_token(self) -> Optional[str]:
        return f"session:{self.session_id}" if self.session_id else None

    @property
    def owner_token(self) -> Optional[str]:
        """Owner of holds and tickets; users win over their session id"""
        if self.user_id is not None:
            return f"user:{self.user_id}"
        return self.session_token

    @property
    def actor(self) -> str:
        return self.owner_token or "anonymous"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session_id: Optional[str] = Header(None, alias="X-Session-Id", max_length=128),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if credentials:
        payload = decode_access_token(credentials.credentials)
        if not payload or not str(payload.get("sub", "")).isdigit():
            raise _unauthorized("Invalid or expired token")

        user = await db.get(User, int(payload["sub"]))
        if not user or not user.is_active:
            raise _unauthorized("User not found or inactive")
        return Principal(role=user.role.value, user_id=user.id, session_id=session_id)

    return Principal(role=ANONYMOUS, session_id=session_id)


def require_roles(*roles: str):
    """Dependency factory: the caller's role must be one of ``roles``"""

    async def checker(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in roles:
            if not principal.is_authenticated:
                raise _unauthorized("Authentication required")
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return principal

    return checker


async def require_owner(principal: Principal = Depends(get_principal)) -> Principal:
    """Any caller that can own a hold: a user or a session"""
    if not principal.owner_token:
        raise _unauthorized("Provide a bearer token or an X-Session-Id header")
    return principal


def get_audit_log() -> ActionLogService:
    return audit_log


def get_payment() -> PaymentGateway:
    return get_payment_gateway()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
