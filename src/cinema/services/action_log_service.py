"""
Audit log of user and admin actions

Writes go through their own session so an audit failure can never roll
back or fail the booking it describes.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from cinema.core.database import AsyncSessionLocal
from cinema.models import ActionLog

logger = logging.getLogger(__name__)


class ActionLogService:
    """Fire-and-forget audit sink"""

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal):
        self.session_factory = session_factory

    async def log_action(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[int] = None,
        details: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        try:
            async with self.session_factory() as db:
                async with db.begin():
                    db.add(
                        ActionLog(
                            user_id=user_id,
                            action=action,
                            entity_type=entity_type,
                            entity_id=entity_id,
                            details=details,
                            ip_address=ip_address,
                        )
                    )
        except Exception:
            logger.exception(f"Failed to write audit log {action} {entity_type}:{entity_id}")

    async def list_logs(
        self,
        page: int = 1,
        page_size: int = 50,
        user_id: Optional[str] = None,
        entity_type: Optional[str] = None,
    ) -> Tuple[List[ActionLog], int]:
        """Paged logs, newest first"""
        query = select(ActionLog)
        if user_id:
            query = query.where(ActionLog.user_id == user_id)
        if entity_type:
            query = query.where(ActionLog.entity_type == entity_type)

        async with self.session_factory() as db:
            count_query = select(func.count()).select_from(query.subquery())
            total = (await db.execute(count_query)).scalar()

            query = (
                query.order_by(ActionLog.timestamp.desc(), ActionLog.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            result = await db.execute(query)
            return list(result.scalars().all()), total


audit_log = ActionLogService()
