"""
Prometheus metrics for monitoring
"""
import time
from functools import wraps

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

# ==================== Hold Metrics ====================

holds_placed_total = Counter(
    "holds_placed_total",
    "Total holds placed",
)

holds_rejected_total = Counter(
    "holds_rejected_total",
    "Total hold requests rejected",
    ["reason"],  # seat_unavailable, too_many_holds
)

holds_released_total = Counter(
    "holds_released_total",
    "Total holds released by their owner",
)

holds_expired_total = Counter(
    "holds_expired_total",
    "Total holds expired by the sweeper",
)

seats_reclaimed_total = Counter(
    "seats_reclaimed_total",
    "Total held seats returned to availability after expiry",
)

# ==================== Reservation Metrics ====================

reservations_confirmed_total = Counter(
    "reservations_confirmed_total",
    "Total holds confirmed into tickets",
)

reservations_failed_total = Counter(
    "reservations_failed_total",
    "Total failed confirmations",
    ["reason"],  # hold_expired, not_owner, payment_declined, race_lost
)

tickets_issued_total = Counter(
    "tickets_issued_total",
    "Total tickets issued",
)

hold_placement_duration_seconds = Histogram(
    "hold_placement_duration_seconds",
    "Time to place a hold",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
)

reservation_confirmation_duration_seconds = Histogram(
    "reservation_confirmation_duration_seconds",
    "Time to confirm a hold including payment",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# ==================== WebSocket Metrics ====================

websocket_connections_total = Gauge(
    "websocket_connections_total",
    "Current WebSocket connections",
    ["showtime_id"],
)

# ==================== Helper Functions ====================


def track_time(metric: Histogram):
    """Decorator to track execution time of a coroutine"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format"""
    return generate_latest()
