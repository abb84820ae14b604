"""
Health check endpoints with database pool monitoring.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check
from app.features.scheduling.availability.service import resolve_timezone
from app.features.scheduling.domain.errors import InvalidConfiguration
from app.infrastructure.observability.logging import log_health_check

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "schedulesync-core"}


@router.get("/readyz")
async def readyz():
    """Readiness check covering the database pool and configuration."""
    checks = {}
    overall_ok = True

    t0 = time.time()
    try:
        db_health = await db_health_check()
        is_healthy = db_health.get("healthy", False)

        checks["database"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        if "pool_stats" in db_health:
            pool_stats = db_health["pool_stats"]
            checks["database"].update(
                {
                    "pool_size": pool_stats.get("pool_size", 0),
                    "pool_available": pool_stats.get("pool_available", 0),
                    "pool_utilization_percent": pool_stats.get("pool_utilization_percent", 0),
                }
            )
        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")

        log_health_check(
            "database",
            is_healthy,
            checks["database"]["latency_ms"],
            checks["database"].get("error"),
        )
        overall_ok = overall_ok and is_healthy

    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    config_issues = []
    if not settings.DATABASE_URL:
        config_issues.append("DATABASE_URL not set")
    if settings.WORKING_HOURS_START >= settings.WORKING_HOURS_END:
        config_issues.append("WORKING_HOURS_START must be before WORKING_HOURS_END")
    try:
        resolve_timezone(settings.DEFAULT_TIMEZONE)
    except InvalidConfiguration as e:
        config_issues.append(str(e))

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/database")
async def database_health():
    """Detailed database pool health information."""
    return await db_health_check()
