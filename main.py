"""
Fleet Rental API - FastAPI Application
Version: 1.0

Main entry point with automatic database initialization.
"""

import asyncio
import time
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

settings = get_settings()

# Configure structured logging FIRST (before the service modules log anything)
from services.logging_config import configure_logging, get_logger, set_trace_id  # noqa: E402

configure_logging(json_format=settings.is_production, log_level=settings.LOG_LEVEL)

logger = get_logger(__name__)

from routers import activities, bookings, dashboard, maintenance, notifications, reports, vehicles  # noqa: E402
from routers.responses import fail  # noqa: E402
from services.errors import ServiceError  # noqa: E402
from services.metrics import get_metrics, record_request, set_app_info  # noqa: E402


async def wait_for_database(max_retries: int = 30, delay: int = 2) -> bool:
    """Wait for database to be available and create tables."""
    from database import engine, Base
    import models  # noqa: F401  registers the tables on Base.metadata

    logger.info("Waiting for database...")

    for attempt in range(max_retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            logger.info("Database connection established")

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            logger.info("Database tables ready")
            return True

        except Exception as e:  # driver-specific connection errors
            logger.warning(f"Database not ready (attempt {attempt + 1}/{max_retries}): {e}")
            if attempt < max_retries - 1:
                await asyncio.sleep(delay)

    logger.error("Could not connect to database after all retries")
    return False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.APP_ENV})")

    if not await wait_for_database():
        raise RuntimeError("Database not available")

    set_app_info(version=settings.APP_VERSION, environment=settings.APP_ENV)
    logger.info("Application ready")

    yield

    logger.info("Shutting down...")
    from database import close_db
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Vehicle rental fleet management API",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def trace_id_middleware(request: Request, call_next):
    """Propagate X-Trace-ID, log the request and record its metrics."""
    trace_id = request.headers.get("X-Trace-ID") or str(uuid.uuid4())[:8]
    set_trace_id(trace_id)
    started = time.perf_counter()

    logger.info("Request started", method=request.method, path=request.url.path)

    response = await call_next(request)
    duration = time.perf_counter() - started

    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", "unmatched")
    record_request(request.method, endpoint, response.status_code, duration)

    response.headers["X-Trace-ID"] = trace_id
    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration * 1000, 2)
    )
    return response


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = defaultdict(list)
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "body"].append(error.get("msg", "Invalid value"))
    return dict(errors)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"Service error: {exc.message}", path=request.url.path)
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}", path=request.url.path)
    return fail(exc.message, exc.status_code, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return fail("Validation error", 422, _validation_errors(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return fail("API endpoint not found", 404)
    return fail(str(exc.detail), exc.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return fail("Internal server error", 500)


# =============================================================================
# ROUTES
# =============================================================================

app.include_router(dashboard.router)
app.include_router(vehicles.router)
app.include_router(bookings.router)
app.include_router(maintenance.router)
app.include_router(activities.router)
app.include_router(notifications.router)
app.include_router(reports.router)

if settings.DEBUG:
    for route in app.routes:
        if hasattr(route, "path") and hasattr(route, "methods"):
            logger.debug(f"Registered route: {route.path} {sorted(route.methods or [])}")


@app.get("/health/live")
async def liveness_check():
    """
    Liveness probe - checks if the process is running.

    Does NOT check the database.
    """
    return {"status": "alive"}


@app.get("/health/ready")
async def readiness_check():
    """Readiness probe - checks the database connection."""
    from database import engine

    checks = {
        "status": "ready",
        "version": settings.APP_VERSION,
        "database": "disconnected",
    }

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as e:  # any driver failure means not ready
        checks["status"] = "not_ready"
        checks["error"] = str(e)
        return JSONResponse(status_code=503, content=checks)

    return checks


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        workers=1
    )
