"""
Availability service - answers "which slots can be booked on this date".

Gathers busy time from the host's calendar and existing bookings, then
hands everything to the pure slot pipeline.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings
from app.features.scheduling.calendar.busy_client import CalendarBusyClient
from app.features.scheduling.domain.errors import EventTypeNotFound, InvalidConfiguration
from app.features.scheduling.domain.models import (
    AvailabilityResult,
    CandidateSlot,
    EventTypeConfig,
    WorkingHours,
    day_of_week,
)
from app.infrastructure.observability.logging import get_logger

from .conflicts import compute_available_slots, resolve_conflicts
from .repository import AvailabilityRepository
from .slots import generate_candidate_slots

logger = get_logger(__name__)

WEEKEND_DAYS = {0, 6}
SUGGESTION_GRID_MINUTES = 30


def resolve_timezone(name: str | None) -> tzinfo:
    if not name:
        name = settings.DEFAULT_TIMEZONE
    if name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidConfiguration(f"Unknown timezone: {name}") from e


async def resolve_host_timezone(host_id: str, name: str | None = None) -> tzinfo:
    """
    The zone a host's bookings are read in: an explicit `name` wins, then
    the host's stored timezone, then DEFAULT_TIMEZONE.

    Raises:
        InvalidConfiguration: `name` is given and unknown
    """
    if name:
        return resolve_timezone(name)

    stored = await AvailabilityRepository.fetch_host_timezone(host_id)
    if stored:
        try:
            return resolve_timezone(stored)
        except InvalidConfiguration:
            logger.warning("Stored host timezone is invalid", host_id=host_id, timezone=stored)
    return resolve_timezone(None)


def default_working_hours() -> WorkingHours:
    return WorkingHours(start=settings.WORKING_HOURS_START, end=settings.WORKING_HOURS_END)


class AvailabilityService:
    def __init__(self, calendar_client: CalendarBusyClient | None = None):
        self._calendar_client = calendar_client

    @property
    def calendar_client(self) -> CalendarBusyClient:
        if self._calendar_client is None:
            self._calendar_client = CalendarBusyClient()
        return self._calendar_client

    async def get_available_slots(
        self,
        host_id: str,
        event_type_id: str,
        requested_date: date,
        timezone: str | None = None,
        now: datetime | None = None,
    ) -> AvailabilityResult:
        """
        Free slots for one event type on one day.

        Raises:
            EventTypeNotFound: the event type is unknown or inactive
            InvalidConfiguration: bad duration / interval, or unknown timezone
        """
        zone = resolve_timezone(timezone)
        now = now or datetime.now(UTC)

        config = await AvailabilityRepository.fetch_event_type_config(host_id, event_type_id)
        if config is None:
            raise EventTypeNotFound(
                f"Event type {event_type_id} not found or inactive", user_id=host_id
            )

        day_start = datetime.combine(requested_date, datetime.min.time(), tzinfo=zone)
        day_end = day_start + timedelta(days=1)

        # The horizon check inside compute_available_slots short-circuits
        # before busy time is consulted, so skip the I/O as well.
        if requested_date > now.astimezone(zone).date() + timedelta(days=config.max_days_ahead):
            return compute_available_slots(
                requested_date, config, [], now, default_working_hours(), zone
            )

        calendar_busy = await self.calendar_client.fetch_busy_intervals(host_id, day_start, day_end)
        booked = await AvailabilityRepository.fetch_existing_bookings(
            host_id, event_type_id, day_start, day_end
        )

        result = compute_available_slots(
            requested_date,
            config,
            [*calendar_busy, *booked],
            now,
            default_working_hours(),
            zone,
        )

        logger.info(
            "Available slots computed",
            host_id=host_id,
            event_type_id=event_type_id,
            date=requested_date.isoformat(),
            slot_count=len(result.slots),
            calendar_busy_count=len(calendar_busy),
            booking_count=len(booked),
        )
        return result

    async def get_open_weekday_slots(
        self,
        host_id: str,
        duration: int,
        days_ahead: int,
        zone: tzinfo,
        now: datetime,
    ) -> list[CandidateSlot]:
        """
        Free slots on the next `days_ahead` weekdays (starting tomorrow) on a
        30-minute grid, clear of confirmed or pending bookings and calendar
        busy time.
        """
        config = EventTypeConfig(duration=duration, slot_interval=SUGGESTION_GRID_MINUTES)
        hours = default_working_hours()
        today = now.astimezone(zone).date()

        range_start = datetime.combine(today + timedelta(days=1), hours.start, tzinfo=zone)
        range_end = datetime.combine(today + timedelta(days=days_ahead), hours.end, tzinfo=zone)

        booked = await AvailabilityRepository.fetch_host_bookings(host_id, range_start, range_end)
        calendar_busy = await self.calendar_client.fetch_busy_intervals(
            host_id, range_start, range_end
        )
        busy = [*booked, *calendar_busy]

        candidates: list[CandidateSlot] = []
        for offset in range(1, days_ahead + 1):
            day = today + timedelta(days=offset)
            if day_of_week(datetime.combine(day, hours.start)) in WEEKEND_DAYS:
                continue
            candidates.extend(generate_candidate_slots(day, config, hours, zone))

        return resolve_conflicts(candidates, busy, earliest_allowed=now)


availability_service = AvailabilityService()
