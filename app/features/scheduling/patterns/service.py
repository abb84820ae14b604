"""
Pattern service - recomputes and serves a host's booking pattern summaries.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any

from app.config import settings
from app.features.scheduling.availability.service import resolve_host_timezone
from app.infrastructure.observability.logging import get_logger

from .analyzer import PatternAnalysis, analyze_booking_patterns
from .repository import PatternRepository

logger = get_logger(__name__)


class PatternService:
    async def refresh_patterns(
        self, user_id: str, tz: tzinfo | None = None, now: datetime | None = None
    ) -> PatternAnalysis | None:
        """
        Analyze the trailing window and overwrite the stored summaries.

        Hours and weekdays are read in `tz`, or in the host's own zone when
        none is given; stored timestamps come back from the pool in UTC.
        """
        now = now or datetime.now(UTC)
        if tz is None:
            tz = await resolve_host_timezone(user_id)
        since = now - timedelta(days=settings.PATTERN_LOOKBACK_DAYS)

        bookings = await PatternRepository.fetch_recent_bookings(user_id, since)
        analysis = analyze_booking_patterns(bookings, tz)
        if analysis is None:
            logger.info("No booking history for pattern analysis", user_id=user_id)
            return None

        await PatternRepository.persist_pattern_summaries(user_id, analysis.summaries())
        logger.info(
            "Booking patterns refreshed",
            user_id=user_id,
            booking_count=len(bookings),
            peak_hour=analysis.preferred_hours["peakHour"],
        )
        return analysis

    async def get_patterns(self, user_id: str) -> dict[str, dict[str, Any]]:
        return await PatternRepository.load_pattern_summaries(user_id)

    async def get_or_refresh_patterns(
        self, user_id: str, tz: tzinfo | None = None
    ) -> dict[str, dict[str, Any]]:
        """Stored summaries, computing them first when none exist yet."""
        patterns = await self.get_patterns(user_id)
        if patterns:
            return patterns

        logger.info("No stored patterns, analyzing now", user_id=user_id)
        analysis = await self.refresh_patterns(user_id, tz)
        return analysis.to_dict() if analysis else {}


pattern_service = PatternService()
