"""
User Service - registration, login and back-office user management
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.database import atomic
from cinema.core.security import hash_password, verify_password
from cinema.models import User, UserRole
from cinema.services.errors import (
    AuthenticationError,
    InvalidPasswordError,
    NotFoundError,
    UserAlreadyExistsError,
)

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def register(
        db: AsyncSession,
        email: str,
        password: str,
        full_name: str = "",
        role: UserRole = UserRole.USER,
    ) -> User:
        if await UserService.get_by_email(db, email):
            raise UserAlreadyExistsError(f"Email {email} is already registered")

        try:
            async with atomic(db):
                user = User(
                    email=email.lower(),
                    full_name=full_name,
                    password_hash=hash_password(password),
                    role=role,
                    is_active=True,
                )
                db.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise UserAlreadyExistsError(f"Email {email} is already registered")
        logger.info(f"User {user.id} registered")
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User:
        user = await UserService.get_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Incorrect email or password")
        if not user.is_active:
            raise AuthenticationError("User account is disabled")
        return user

    @staticmethod
    async def list_users(db: AsyncSession, page: int = 1, page_size: int = 50) -> Tuple[List[User], int]:
        total = (await db.execute(select(func.count(User.id)))).scalar()
        query = select(User).order_by(User.id).offset((page - 1) * page_size).limit(page_size)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def update_user(db: AsyncSession, user_id: int, changes: Dict[str, Any]) -> User:
        """Admin edit of name, role or active flag"""
        user = await UserService.get_user(db, user_id)
        async with atomic(db):
            for field, value in changes.items():
                setattr(user, field, value)
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: int, changes: Dict[str, Any]) -> User:
        """Self-service edit of full name and phone number"""
        user = await UserService.get_user(db, user_id)
        async with atomic(db):
            for field, value in changes.items():
                setattr(user, field, value)
        logger.info(f"User {user_id} updated profile fields {sorted(changes)}")
        return user

    @staticmethod
    async def change_password(db: AsyncSession, user_id: int, current_password: str, new_password: str) -> None:
        user = await UserService.get_user(db, user_id)
        if not verify_password(current_password, user.password_hash):
            raise InvalidPasswordError("Current password is incorrect")
        async with atomic(db):
            user.password_hash = hash_password(new_password)
        logger.info(f"User {user_id} changed password")
