"""
Pattern refresh job.

Periodically recomputes booking pattern summaries for every host with
recent bookings so smart suggestions rarely have to analyze on demand.
"""

import asyncio
import time
from datetime import UTC, datetime, timedelta

from app.config import settings
from app.db.pool import db_pool
from app.features.scheduling.patterns.repository import PatternRepository
from app.features.scheduling.patterns.service import pattern_service
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

BATCH_SIZE = 50
MAX_CONCURRENT_REFRESHES = 5
REFRESH_TIMEOUT_SECONDS = 30


class PatternRefreshJobError(Exception):
    def __init__(self, message: str, operation: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class PatternRefreshMetrics:
    def __init__(self):
        self.reset()

    def reset(self):
        self.start_time = datetime.now(UTC)
        self.users_processed = 0
        self.patterns_refreshed = 0
        self.users_without_history = 0
        self.failures = 0
        self.total_duration_seconds = 0.0
        self.errors: list[dict] = []

    def record(self, user_id: str, refreshed: bool) -> None:
        self.users_processed += 1
        if refreshed:
            self.patterns_refreshed += 1
        else:
            self.users_without_history += 1

    def record_failure(self, user_id: str, error: str) -> None:
        self.users_processed += 1
        self.failures += 1
        self.errors.append({"user_id": user_id, "error": error})
        logger.warning("Pattern refresh failed for user", user_id=user_id, error=error)

    def finalize(self) -> None:
        self.total_duration_seconds = (datetime.now(UTC) - self.start_time).total_seconds()

    def to_dict(self) -> dict:
        return {
            "users_processed": self.users_processed,
            "patterns_refreshed": self.patterns_refreshed,
            "users_without_history": self.users_without_history,
            "failures": self.failures,
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "errors": self.errors[:10],
        }


class PatternRefreshJob:
    def __init__(self):
        self.is_running = False
        self.last_run_time: datetime | None = None
        self.metrics = PatternRefreshMetrics()

    async def run_once(self) -> dict:
        """
        Refresh patterns for every host with bookings in the lookback window.

        Raises:
            PatternRefreshJobError: the host list could not be loaded
        """
        if self.is_running:
            logger.warning("Pattern refresh already running, skipping this iteration")
            return {"skipped": True, "reason": "already_running"}

        self.is_running = True
        self.metrics.reset()
        try:
            since = datetime.now(UTC) - timedelta(days=settings.PATTERN_LOOKBACK_DAYS)
            try:
                user_ids = await PatternRepository.fetch_users_with_recent_bookings(since)
            except Exception as e:
                raise PatternRefreshJobError(
                    f"Failed to load users with recent bookings: {e}", operation="fetch_users"
                ) from e

            if not user_ids:
                logger.info("No users with recent bookings, nothing to refresh")
            else:
                await self._process_in_batches(user_ids)

            self.metrics.finalize()
            self.last_run_time = datetime.now(UTC)
            result = self.metrics.to_dict()
            logger.info(
                "Pattern refresh completed",
                **{k: v for k, v in result.items() if k != "errors"},
            )
            return result
        finally:
            self.is_running = False

    async def _process_in_batches(self, user_ids: list[str]) -> None:
        batches = [user_ids[i : i + BATCH_SIZE] for i in range(0, len(user_ids), BATCH_SIZE)]
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_REFRESHES)

        for batch in batches:
            await asyncio.gather(
                *(self._refresh_user(semaphore, user_id) for user_id in batch),
                return_exceptions=True,
            )

    async def _refresh_user(self, semaphore: asyncio.Semaphore, user_id: str) -> None:
        async with semaphore:
            start = time.time()
            try:
                analysis = await asyncio.wait_for(
                    pattern_service.refresh_patterns(user_id), timeout=REFRESH_TIMEOUT_SECONDS
                )
            except TimeoutError:
                self.metrics.record_failure(user_id, "timeout")
                return
            except Exception as e:
                self.metrics.record_failure(user_id, str(e))
                return

            self.metrics.record(user_id, analysis is not None)
            logger.debug(
                "Patterns refreshed for user",
                user_id=user_id,
                had_history=analysis is not None,
                duration_ms=round((time.time() - start) * 1000, 1),
            )


pattern_refresh_job = PatternRefreshJob()


async def run_pattern_refresh_job() -> dict:
    return await pattern_refresh_job.run_once()


async def start_pattern_refresh_scheduler() -> None:
    """Worker entry point: refresh on a fixed interval until cancelled."""
    interval_minutes = settings.PATTERN_REFRESH_INTERVAL_MINUTES
    logger.info("Starting pattern refresh scheduler", interval_minutes=interval_minutes)

    if not db_pool.initialized:
        await db_pool.initialize()

    try:
        while True:
            try:
                await run_pattern_refresh_job()
                await asyncio.sleep(interval_minutes * 60)
            except PatternRefreshJobError as e:
                logger.error("Pattern refresh cycle failed", error=str(e), operation=e.operation)
                await asyncio.sleep(60)
    finally:
        await db_pool.close()


async def run_pattern_refresh_once() -> dict:
    """Single refresh pass with its own pool, for cron-style deployments."""
    if not db_pool.initialized:
        await db_pool.initialize()
    try:
        return await run_pattern_refresh_job()
    finally:
        await db_pool.close()
