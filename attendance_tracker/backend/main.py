# attendance_tracker/backend/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
import redis.asyncio as redis
import logging

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from fastapi.middleware.cors import CORSMiddleware

from .config.config import settings
from .logging.logging_config import setup_logging
from .api import admin, auth, events, preferences, reports, student, trainer
from .db.redis_client import RedisClient
from .tasks.seed import seed_demo_data
from .api.utilities.limiter import limiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the shared Redis pool on startup (seeding demo data when asked
    to) and releases it on shutdown.
    """
    setup_logging()
    logger.info("Starting application...")

    redis_pool = None
    try:
        redis_pool = redis.ConnectionPool.from_url(
            settings.APPLICATION_REDIS_URL, decode_responses=True
        )
        app.state.redis_pool = redis_pool
        logger.info("Redis connection pool created.")

        if settings.SEED_DEMO_DATA:
            await seed_demo_data(RedisClient(redis.Redis(connection_pool=redis_pool)))
    except Exception as e:
        logger.error(f"ERROR: Startup failed: {e}")

    yield

    logger.info("Shutting down application...")
    if getattr(app.state, "redis_pool", None):
        await app.state.redis_pool.disconnect()
        logger.info("Redis connection pool closed.")


app = FastAPI(
    title="Attendance Tracker API",
    description="Attendance and training-log dashboard for a training institute",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(trainer.router, prefix="/api/v1")
app.include_router(student.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")
app.include_router(preferences.router, prefix="/api/v1")
app.include_router(events.router, prefix="/api/v1")


@app.get("/health", tags=["System"])
def health_check():
    """Simple liveness endpoint."""
    return {"status": "ok", "message": "Attendance Tracker API is running."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
