"""
Application entrypoint: database pool lifecycle and router wiring.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.features.scheduling.api.router import public_router
from app.features.scheduling.api.router import router as scheduling_router
from app.features.scheduling.availability.service import availability_service
from app.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from app.routes import health

setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool on startup; close it and the calendar client on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        await db_pool.initialize()
    except Exception as e:
        logger.error("Failed to initialize database pool", error=str(e))
        raise

    yield

    logger.info("Application shutting down")
    shutdown_errors = []

    try:
        await availability_service.calendar_client.close()
    except Exception as e:
        logger.error("Error closing calendar client", error=str(e))
        shutdown_errors.append(f"Calendar: {e}")

    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="ScheduleSync Core",
    description="Availability, scheduling rules, auto-confirm and smart suggestions",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(public_router)
app.include_router(scheduling_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag the request's logs with a request id and log timing."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    clear_request_context()
    bind_request_context(request_id=request_id)

    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
