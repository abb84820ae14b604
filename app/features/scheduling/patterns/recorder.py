"""
Booking pattern recorder.

Bumps the (weekday, hour, duration) counter for every confirmed booking.
Recording is best effort: a failure is logged and the booking goes on.
"""

from __future__ import annotations

from datetime import datetime, tzinfo

from app.features.scheduling.domain.models import PatternKey, day_of_week
from app.infrastructure.observability.logging import get_logger

from .repository import PatternRepository

logger = get_logger(__name__)

DEFAULT_DURATION = 30


def pattern_key(
    start_time: datetime, duration: int | None = None, tz: tzinfo | None = None
) -> PatternKey:
    local = start_time.astimezone(tz) if tz else start_time
    return PatternKey(
        day_of_week=day_of_week(local),
        hour_of_day=local.hour,
        duration=duration or DEFAULT_DURATION,
    )


async def record_booking_pattern(
    user_id: str,
    start_time: datetime,
    duration: int | None = None,
    tz: tzinfo | None = None,
) -> bool:
    """Returns whether the counter was bumped; never raises."""
    key = pattern_key(start_time, duration, tz)
    try:
        await PatternRepository.persist_booking_pattern(
            user_id, key.day_of_week, key.hour_of_day, key.duration
        )
    except Exception as e:
        logger.error(
            "Failed to record booking pattern",
            user_id=user_id,
            day_of_week=key.day_of_week,
            hour_of_day=key.hour_of_day,
            error=str(e),
        )
        return False

    logger.debug(
        "Booking pattern recorded",
        user_id=user_id,
        day_of_week=key.day_of_week,
        hour_of_day=key.hour_of_day,
        duration=key.duration,
    )
    return True
