"""
Rate limiting using SlowAPI
"""
import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from cinema.core.config import settings

logger = logging.getLogger(__name__)


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Anonymous sessions are limited per session id, everyone else per IP.
    Bearer tokens are not decoded here; that happens in the route dependency.
    """
    session_id = request.headers.get("X-Session-Id")
    if session_id:
        return f"session:{session_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
