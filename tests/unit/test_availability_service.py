"""
Tests for the availability service with repository and calendar mocked out.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock

import pytest

from app.features.scheduling.availability.service import (
    availability_service,
    resolve_host_timezone,
    resolve_timezone,
)
from app.features.scheduling.domain.errors import EventTypeNotFound, InvalidConfiguration
from app.features.scheduling.domain.models import BusyInterval, EventTypeConfig

REPO = "app.features.scheduling.availability.service.AvailabilityRepository"
NOW = datetime(2026, 10, 19, 10, tzinfo=UTC)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=UTC)


class FakeCalendar:
    def __init__(self, busy=None):
        self.busy = busy or []
        self.calls = []

    async def fetch_busy_intervals(self, host_id, start, end):
        self.calls.append((host_id, start, end))
        return self.busy

    async def close(self):
        pass


@pytest.fixture
def calendar(monkeypatch):
    fake = FakeCalendar()
    monkeypatch.setattr(availability_service, "_calendar_client", fake)
    return fake


@pytest.mark.asyncio
async def test_calendar_and_bookings_both_block_slots(monkeypatch, calendar):
    calendar.busy = [BusyInterval(start=at(20, 10), end=at(20, 11))]
    bookings = AsyncMock(return_value=[BusyInterval(start=at(20, 14), end=at(20, 14, 30))])
    monkeypatch.setattr(
        f"{REPO}.fetch_event_type_config", AsyncMock(return_value=EventTypeConfig(duration=30))
    )
    monkeypatch.setattr(f"{REPO}.fetch_existing_bookings", bookings)

    result = await availability_service.get_available_slots(
        "host-1", "evt-1", date(2026, 10, 20), "UTC", now=NOW
    )

    starts = [s.start for s in result.slots]
    assert len(starts) == 13
    assert at(20, 10) not in starts
    assert at(20, 10, 30) not in starts
    assert at(20, 14) not in starts
    assert result.message is None
    bookings.assert_awaited_once_with("host-1", "evt-1", at(20, 0), at(21, 0))
    assert calendar.calls == [("host-1", at(20, 0), at(21, 0))]


@pytest.mark.asyncio
async def test_unknown_event_type(monkeypatch, calendar):
    monkeypatch.setattr(f"{REPO}.fetch_event_type_config", AsyncMock(return_value=None))

    with pytest.raises(EventTypeNotFound):
        await availability_service.get_available_slots("host-1", "missing", date(2026, 10, 20))


@pytest.mark.asyncio
async def test_beyond_horizon_skips_busy_lookup(monkeypatch, calendar):
    bookings = AsyncMock()
    monkeypatch.setattr(
        f"{REPO}.fetch_event_type_config",
        AsyncMock(return_value=EventTypeConfig(duration=30, max_days_ahead=14)),
    )
    monkeypatch.setattr(f"{REPO}.fetch_existing_bookings", bookings)

    result = await availability_service.get_available_slots(
        "host-1", "evt-1", date(2026, 12, 1), now=NOW
    )

    assert result.slots == []
    assert result.message == "Bookings are only available up to 14 days in advance"
    bookings.assert_not_awaited()
    assert calendar.calls == []


@pytest.mark.asyncio
async def test_open_weekday_slots_skip_weekends(monkeypatch, calendar):
    friday_noon = at(23, 12)
    host_bookings = AsyncMock(return_value=[BusyInterval(start=at(26, 9), end=at(26, 10))])
    monkeypatch.setattr(f"{REPO}.fetch_host_bookings", host_bookings)

    slots = await availability_service.get_open_weekday_slots(
        "host-1", 30, 3, UTC, friday_noon
    )

    assert {s.start.date() for s in slots} == {date(2026, 10, 26)}
    assert slots[0].start == at(26, 10)
    assert len(slots) == 14
    host_bookings.assert_awaited_once_with("host-1", at(24, 9), at(26, 17))


def test_resolve_timezone():
    assert resolve_timezone("UTC") is UTC
    assert str(resolve_timezone("Europe/Berlin")) == "Europe/Berlin"
    with pytest.raises(InvalidConfiguration, match="Unknown timezone: Mars/Olympus"):
        resolve_timezone("Mars/Olympus")


@pytest.mark.asyncio
async def test_host_timezone_prefers_explicit_then_stored(stored_host_timezone):
    stored_host_timezone.return_value = "America/New_York"

    assert str(await resolve_host_timezone("host-1", "Europe/Berlin")) == "Europe/Berlin"
    stored_host_timezone.assert_not_awaited()

    assert str(await resolve_host_timezone("host-1")) == "America/New_York"
    stored_host_timezone.assert_awaited_once_with("host-1")


@pytest.mark.asyncio
async def test_invalid_stored_host_timezone_falls_back(monkeypatch, stored_host_timezone):
    stored_host_timezone.return_value = "Mars/Olympus"
    monkeypatch.setattr(
        "app.features.scheduling.availability.service.settings.DEFAULT_TIMEZONE", "UTC"
    )

    assert await resolve_host_timezone("host-1") is UTC
