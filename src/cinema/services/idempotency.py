"""
Idempotency keys for hold confirmation

A retried confirm with the same X-Idempotency-Key returns the stored result
instead of authorizing the card again.
"""
import logging
import time
from typing import Any, Optional

from cinema.core.config import settings
from cinema.core.redis import redis_client

logger = logging.getLogger(__name__)


class IdempotencyService:
    """
    Result cache plus in-progress lock, both in Redis.

    Without Redis the checks return None / True and confirmation proceeds
    normally; the seat compare-and-set still prevents double booking.
    """

    def __init__(self):
        self.redis = redis_client

    @staticmethod
    def make_key(owner_token: str, operation: str, client_key: str) -> str:
        return f"idempotency:{operation}:{owner_token}:{client_key}"

    async def check_operation(self, idempotency_key: str) -> Optional[dict]:
        """Previous result, or None if the operation is new"""
        result = await self.redis.get(idempotency_key)
        if result:
            logger.info(f"Idempotent replay: {idempotency_key}")
        return result

    async def store_result(self, idempotency_key: str, result: Any):
        await self.redis.set(idempotency_key, result, ttl=settings.IDEMPOTENCY_TTL)

    async def lock_operation(self, idempotency_key: str, ttl: int = 30) -> bool:
        """False only when another request holds the lock"""
        acquired = await self.redis.set_if_absent(f"{idempotency_key}:lock", time.time(), ttl)
        return acquired is not False

    async def release_lock(self, idempotency_key: str):
        await self.redis.delete(f"{idempotency_key}:lock")


# Global instance
idempotency_service = IdempotencyService()
