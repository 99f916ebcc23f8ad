"""
Cache service for managing Redis cache
"""
import logging
from typing import Any, Dict, Optional

from cinema.core.config import settings
from cinema.core.redis import redis_client

logger = logging.getLogger(__name__)


class CacheService:
    """Service for managing cache keys and invalidation"""

    # Cache key patterns
    SHOWTIME_SEATS_KEY = "showtime:{showtime_id}:seats"
    MOVIE_KEY = "movie:{movie_id}"

    @staticmethod
    async def get_showtime_seats(showtime_id: int) -> Optional[Dict[str, Any]]:
        """Get cached seat map"""
        key = CacheService.SHOWTIME_SEATS_KEY.format(showtime_id=showtime_id)
        cached = await redis_client.get(key)
        if cached:
            logger.debug(f"Cache HIT: {key}")
        return cached

    @staticmethod
    async def set_showtime_seats(showtime_id: int, data: Dict[str, Any]) -> bool:
        """Cache seat map (short TTL due to high volatility)"""
        key = CacheService.SHOWTIME_SEATS_KEY.format(showtime_id=showtime_id)
        return await redis_client.set(key, data, ttl=settings.REDIS_SEATS_TTL)

    @staticmethod
    async def invalidate_showtime_seats(showtime_id: int) -> bool:
        """Invalidate seat-related cache after any seat state change"""
        key = CacheService.SHOWTIME_SEATS_KEY.format(showtime_id=showtime_id)
        logger.debug(f"Invalidating seat cache for showtime {showtime_id}")
        return await redis_client.delete(key)

    @staticmethod
    async def get_movie(movie_id: int) -> Optional[Dict[str, Any]]:
        key = CacheService.MOVIE_KEY.format(movie_id=movie_id)
        return await redis_client.get(key)

    @staticmethod
    async def set_movie(movie_id: int, data: Dict[str, Any]) -> bool:
        key = CacheService.MOVIE_KEY.format(movie_id=movie_id)
        return await redis_client.set(key, data, ttl=settings.REDIS_CACHE_TTL)

    @staticmethod
    async def invalidate_movie(movie_id: int) -> bool:
        key = CacheService.MOVIE_KEY.format(movie_id=movie_id)
        return await redis_client.delete(key)
