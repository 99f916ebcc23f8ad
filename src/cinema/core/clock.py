"""
Single time source for hold deadlines and timestamps.

Times are naive UTC, matching the DateTime columns. Services call
``clock.utcnow()`` through the module so tests can freeze time.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
