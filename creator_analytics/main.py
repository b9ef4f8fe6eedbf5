"""
creator_analytics/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (pipeline, creators, conversions, events, creator metrics)
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from creator_analytics.core.config import settings, validate_settings
from creator_analytics.core.errors import add_exception_handlers
from creator_analytics.core.logging import setup_logging, get_logger
from creator_analytics.db.mongo import connect_to_mongo, close_mongo_connection, check_database_health
from creator_analytics.db.indexes import create_indexes
from creator_analytics.api import conversions, creator_metrics, creators, events, pipeline

APP_VERSION = "1.0.0"
SLOW_REQUEST_SECONDS = 5.0

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Starting Creator Analytics service...")

    try:
        validate_settings()
        logger.info("Configuration validated")

        await connect_to_mongo()
        await create_indexes()

        is_healthy = await check_database_health()
        if not is_healthy:
            logger.warning("Database health check failed during startup")

        logger.info(
            f"Creator Analytics started (environment={settings.ENVIRONMENT}, debug={settings.DEBUG})"
        )

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("Shutting down Creator Analytics service...")

    try:
        await close_mongo_connection()
        logger.info("Creator Analytics shut down")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="Creator Analytics",
    description="Admin analytics for a creator marketplace: pipeline, health, conversion",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Times every request; slow ones are logged."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > SLOW_REQUEST_SECONDS:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {process_time:.2f}s")

    return response


add_exception_handlers(app)

ROUTERS = (
    pipeline.router,
    creators.router,
    conversions.router,
    events.router,
    events.admin_router,
    creator_metrics.router,
)

for router in ROUTERS:
    app.include_router(router, prefix=settings.API_PREFIX)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "Creator Analytics API",
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "api_prefix": settings.API_PREFIX,
    }


async def database_status() -> str:
    try:
        return "healthy" if await check_database_health() else "unhealthy"
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return "unhealthy"


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    503 unless the database answers a ping.
    """
    database = await database_status()
    healthy = database == "healthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": APP_VERSION,
            "checks": {"database": database},
        },
    )


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness check - ready once the database is reachable.
    """
    if await database_status() == "healthy":
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness check - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "creator_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
