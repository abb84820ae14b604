"""
Repository for booking pattern counters, pattern summaries and the booking
history they are computed from.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from app.db.helpers import execute_query, execute_transaction, fetch_all
from app.features.scheduling.domain.models import BookingRecord, PatternType
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Single statement so concurrent bookings in the same bucket never lose an
# increment.
UPSERT_PATTERN_COUNT = """
    INSERT INTO booking_pattern_counts
        (user_id, day_of_week, hour_of_day, duration, booking_count, updated_at)
    VALUES (%s, %s, %s, %s, 1, NOW())
    ON CONFLICT (user_id, day_of_week, hour_of_day, duration)
    DO UPDATE SET
        booking_count = booking_pattern_counts.booking_count + 1,
        updated_at = NOW()
"""

UPSERT_PATTERN_SUMMARY = """
    INSERT INTO booking_pattern_summaries (user_id, pattern_type, pattern_data, last_calculated)
    VALUES (%s, %s, %s::jsonb, NOW())
    ON CONFLICT (user_id, pattern_type)
    DO UPDATE SET
        pattern_data = EXCLUDED.pattern_data,
        last_calculated = NOW()
"""


class PatternRepository:
    @staticmethod
    async def persist_booking_pattern(
        user_id: str, day_of_week: int, hour_of_day: int, duration: int
    ) -> None:
        await execute_query(UPSERT_PATTERN_COUNT, (user_id, day_of_week, hour_of_day, duration))

    @staticmethod
    async def persist_pattern_summary(
        user_id: str, pattern_type: PatternType, data: dict[str, Any]
    ) -> None:
        await execute_query(UPSERT_PATTERN_SUMMARY, (user_id, pattern_type.value, json.dumps(data)))

    @staticmethod
    async def persist_pattern_summaries(
        user_id: str, summaries: Mapping[PatternType, dict[str, Any]]
    ) -> None:
        """Overwrite every summary in one transaction."""
        if not summaries:
            return
        await execute_transaction(
            [
                (UPSERT_PATTERN_SUMMARY, (user_id, pattern_type.value, json.dumps(data)))
                for pattern_type, data in summaries.items()
            ]
        )
        logger.debug("Pattern summaries stored", user_id=user_id, summary_count=len(summaries))

    @staticmethod
    async def load_pattern_summaries(user_id: str) -> dict[str, dict[str, Any]]:
        rows = await fetch_all(
            """
            SELECT pattern_type, pattern_data
            FROM booking_pattern_summaries
            WHERE user_id = %s
            """,
            (user_id,),
        )
        return {row["pattern_type"]: row["pattern_data"] for row in rows}

    @staticmethod
    async def fetch_recent_bookings(
        user_id: str, since: datetime, statuses: tuple[str, ...] = ("confirmed", "completed")
    ) -> list[BookingRecord]:
        rows = await fetch_all(
            """
            SELECT start_time, end_time, status, attendee_email
            FROM bookings
            WHERE host_user_id = %s
              AND start_time > %s
              AND status = ANY(%s)
            ORDER BY start_time DESC
            """,
            (user_id, since, list(statuses)),
        )
        return [
            BookingRecord(
                start_time=row["start_time"],
                end_time=row["end_time"],
                status=row["status"],
                attendee_email=row.get("attendee_email"),
            )
            for row in rows
        ]

    @staticmethod
    async def fetch_attendee_booking_times(user_id: str, attendee_email: str) -> list[datetime]:
        rows = await fetch_all(
            """
            SELECT start_time
            FROM bookings
            WHERE host_user_id = %s
              AND LOWER(attendee_email) = LOWER(%s)
              AND status IN ('confirmed', 'completed')
            """,
            (user_id, attendee_email),
        )
        return [row["start_time"] for row in rows]

    @staticmethod
    async def fetch_users_with_recent_bookings(since: datetime) -> list[str]:
        rows = await fetch_all(
            """
            SELECT DISTINCT host_user_id
            FROM bookings
            WHERE start_time > %s
              AND status IN ('confirmed', 'completed')
            """,
            (since,),
        )
        return [str(row["host_user_id"]) for row in rows]
