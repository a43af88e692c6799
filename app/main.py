"""FastAPI application entrypoint: lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.config import get_settings
from app.database import engine
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.routes import cutting_operations, cycles, modules
from app.services.prediction_service import PredictionSlotRegistry

logger = logging.getLogger("kelpflow")

SERVICE_NAME = "kelpflow"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the database connection
      3. Connect to Redis
      4. Create the prediction slot registry

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "kelpflow_starting",
        extra={
            "log_level": settings.log_level,
            "cycle_duration_days": settings.cycle_duration_days,
            "nearing_harvest_days": settings.nearing_harvest_days,
        },
    )

    redis: Redis | None = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
        app.state.prediction_slots = PredictionSlotRegistry(redis)
    except Exception as exc:
        logger.exception("startup_failure", extra={"error": str(exc)})
        raise

    yield

    logger.info("kelpflow_shutting_down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="KelpFlow API",
    description=(
        "Seaweed cultivation tracking: cycle listing with harvest alerts and "
        "growth rates, post-harvest pipeline, planting from cuttings, staged "
        "cascade deletion of cutting operations and harvest predictions."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, object]]:
    checks: dict[str, dict[str, object]] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        logger.warning("readiness_database_failed", extra={"error": str(exc)})
        checks["database"] = {"ok": False, "message": str(exc)}

    redis: Redis | None = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = {"ok": False, "message": "redis client not initialized"}
    else:
        try:
            await redis.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except Exception as exc:
            logger.warning("readiness_redis_failed", extra={"error": str(exc)})
            checks["redis"] = {"ok": False, "message": str(exc)}
    return checks


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check; verifies the API process is alive."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: database and Redis must both answer."""
    checks = await _run_readiness_checks(app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if ready else "degraded", "service": SERVICE_NAME, "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(cycles.router, prefix="/api/v1")
app.include_router(modules.router, prefix="/api/v1")
app.include_router(cutting_operations.router, prefix="/api/v1")
