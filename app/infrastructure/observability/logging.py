"""
Structured logging for the scheduling service.

JSON lines on stdout via structlog. Request-scoped fields (request id,
host id) are carried in contextvars so repository and service logs made
while handling a request are tagged without threading them through calls.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "schedulesync-core"

NOISY_LOGGERS = ("httpx", "httpcore", "psycopg.pool", "uvicorn.access")


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog over stdlib logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _add_service_name(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """Structured logger, usually `get_logger(__name__)`."""
    return structlog.get_logger(name)


def bind_request_context(**fields: Any) -> None:
    """Attach fields to every log entry emitted for the current request."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def log_health_check(service: str, healthy: bool, latency_ms: float, error: str = None):
    """Log health check results with consistent fields."""
    logger = get_logger("health")

    log_data = {
        "checked_service": service,
        "healthy": healthy,
        "latency_ms": latency_ms,
    }
    if error:
        log_data["error"] = error

    if healthy:
        logger.info("Health check passed", **log_data)
    else:
        logger.error("Health check failed", **log_data)
