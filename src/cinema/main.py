"""
FastAPI application entry point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from cinema.api import admin, auth, catalog, holds, tickets, websocket
from cinema.api.errors import register_error_handlers
from cinema.core.config import settings
from cinema.core.database import engine, init_db
from cinema.core.logging_config import setup_logging
from cinema.core.metrics import CONTENT_TYPE_LATEST, get_metrics
from cinema.core.redis import redis_client
from cinema.middleware.rate_limiter import limiter
from cinema.middleware.tracing import TracingMiddleware
from cinema.services import start_expiry_worker, stop_expiry_worker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    # Test database connection
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    if settings.is_sqlite:
        await init_db()

    await redis_client.connect()

    if settings.EXPIRY_WORKER_ENABLED:
        await start_expiry_worker()

    yield

    logger.info("Shutting down...")
    await stop_expiry_worker()
    await redis_client.close()
    await engine.dispose()
    logger.info("Cleanup complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Cinema ticketing with time-boxed seat holds and atomic confirmation",
    lifespan=lifespan,
)

# Add rate limiter state
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"Rate limit exceeded for {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": f"Too many requests: {exc.detail}",
        },
        headers={"Retry-After": "60"},
    )


register_error_handlers(app)

app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "redis": "healthy" if redis_client.is_connected else "unavailable",
    }


@app.get("/metrics", tags=["Health"])
async def metrics():
    """Prometheus scrape endpoint"""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(catalog.router, prefix="/api/v1", tags=["Catalog"])
app.include_router(holds.router, prefix="/api/v1", tags=["Holds"])
app.include_router(tickets.router, prefix="/api/v1", tags=["Tickets"])
app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
app.include_router(websocket.router, prefix="/ws", tags=["WebSocket"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cinema.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
