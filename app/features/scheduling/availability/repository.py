"""
Data access for availability: event type settings, existing bookings and
calendar credentials.
"""

from collections.abc import Sequence
from datetime import datetime

from app.db.helpers import fetch_all, fetch_one, fetch_val
from app.features.scheduling.domain.models import BusyInterval, EventTypeConfig
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

ACTIVE_BOOKING_STATUSES = ("confirmed", "pending")


class AvailabilityRepository:
    @staticmethod
    async def fetch_event_type_config(host_id: str, event_type_id: str) -> EventTypeConfig | None:
        row = await fetch_one(
            """
            SELECT id, duration, buffer_before, buffer_after, slot_interval,
                   min_notice_hours, max_days_ahead
            FROM event_types
            WHERE user_id = %s
              AND id = %s
              AND is_active = true
            """,
            (host_id, event_type_id),
        )
        return EventTypeConfig.from_row(row) if row else None

    @staticmethod
    async def fetch_existing_bookings(
        host_id: str, event_type_id: str, start: datetime, end: datetime
    ) -> list[BusyInterval]:
        """Non-cancelled bookings of this event type overlapping [start, end)."""
        rows = await fetch_all(
            """
            SELECT start_time, end_time
            FROM bookings
            WHERE host_user_id = %s
              AND event_type_id = %s
              AND status != 'cancelled'
              AND start_time < %s
              AND end_time > %s
            ORDER BY start_time
            """,
            (host_id, event_type_id, end, start),
        )
        return [BusyInterval(start=row["start_time"], end=row["end_time"]) for row in rows]

    @staticmethod
    async def fetch_host_bookings(
        host_id: str,
        start: datetime,
        end: datetime,
        statuses: Sequence[str] = ACTIVE_BOOKING_STATUSES,
    ) -> list[BusyInterval]:
        """Bookings across all of a host's event types, filtered by status."""
        rows = await fetch_all(
            """
            SELECT start_time, end_time
            FROM bookings
            WHERE host_user_id = %s
              AND status = ANY(%s)
              AND start_time < %s
              AND end_time > %s
            ORDER BY start_time
            """,
            (host_id, list(statuses), end, start),
        )
        return [BusyInterval(start=row["start_time"], end=row["end_time"]) for row in rows]

    @staticmethod
    async def fetch_calendar_credentials(host_id: str) -> dict | None:
        return await fetch_one(
            """
            SELECT provider, google_access_token, microsoft_access_token
            FROM users
            WHERE id = %s
            """,
            (host_id,),
        )

    @staticmethod
    async def fetch_host_timezone(host_id: str) -> str | None:
        return await fetch_val("SELECT timezone FROM users WHERE id = %s", (host_id,))
