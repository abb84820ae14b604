"""
Smart suggestion service - ranks the host's open slots for a new meeting.
"""

from __future__ import annotations

from datetime import UTC, datetime

from app.config import settings
from app.features.scheduling.availability.service import (
    availability_service,
    resolve_host_timezone,
)
from app.features.scheduling.domain.models import ScoredSlot
from app.features.scheduling.patterns.analyzer import attendee_preferences
from app.features.scheduling.patterns.repository import PatternRepository
from app.features.scheduling.patterns.service import pattern_service
from app.infrastructure.observability.logging import get_logger

from .scorer import score_slots

logger = get_logger(__name__)

MIN_DURATION = 5
MAX_DURATION = 480


class SuggestionService:
    async def get_smart_suggestions(
        self,
        user_id: str,
        duration: int = 30,
        attendee_email: str | None = None,
        timezone: str | None = None,
        max_slots: int | None = None,
        days_ahead: int | None = None,
        now: datetime | None = None,
    ) -> list[ScoredSlot]:
        """
        Raises:
            ValueError: duration outside 5-480 minutes
            InvalidConfiguration: unknown timezone
        """
        if not MIN_DURATION <= duration <= MAX_DURATION:
            raise ValueError(
                f"Duration must be between {MIN_DURATION} and {MAX_DURATION} minutes"
            )

        zone = await resolve_host_timezone(user_id, timezone)
        now = now or datetime.now(UTC)
        max_slots = max_slots or settings.SMART_SUGGESTION_MAX_SLOTS
        days_ahead = days_ahead or settings.SMART_SUGGESTION_DAYS_AHEAD

        patterns = await pattern_service.get_or_refresh_patterns(user_id, zone)

        open_slots = await availability_service.get_open_weekday_slots(
            user_id, duration, days_ahead, zone, now
        )
        if not open_slots:
            logger.info("No open slots for smart suggestions", user_id=user_id)
            return []

        attendee = None
        if attendee_email:
            history = await PatternRepository.fetch_attendee_booking_times(user_id, attendee_email)
            attendee = attendee_preferences(history, zone)

        suggestions = score_slots(open_slots, patterns, attendee, now, max_slots, zone)

        logger.info(
            "Smart suggestions ranked",
            user_id=user_id,
            candidate_count=len(open_slots),
            returned_count=len(suggestions),
            has_patterns=bool(patterns),
            has_attendee_history=attendee is not None,
            top_score=suggestions[0].score if suggestions else None,
        )
        return suggestions


suggestion_service = SuggestionService()
