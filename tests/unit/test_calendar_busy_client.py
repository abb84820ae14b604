"""
Tests for the calendar busy-time client using pytest-httpx.
"""

import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from app.features.scheduling.calendar.busy_client import (
    CalendarBusyClient,
    google_busy_intervals,
    graph_busy_intervals,
)
from app.features.scheduling.domain.models import BusyInterval

GOOGLE_EVENTS = re.compile(r"https://www\.googleapis\.com/calendar/v3/calendars/primary/events.*")
GRAPH_VIEW = re.compile(r"https://graph\.microsoft\.com/v1\.0/me/calendarView.*")

START = datetime(2026, 10, 20, tzinfo=UTC)
END = datetime(2026, 10, 21, tzinfo=UTC)


def google_credentials():
    return AsyncMock(return_value={"provider": "google", "google_access_token": "g-token"})


def test_google_items_keep_only_opaque_confirmed_events():
    items = [
        {
            "start": {"dateTime": "2026-10-20T10:00:00Z"},
            "end": {"dateTime": "2026-10-20T11:00:00Z"},
        },
        {
            "transparency": "transparent",
            "start": {"dateTime": "2026-10-20T12:00:00Z"},
            "end": {"dateTime": "2026-10-20T13:00:00Z"},
        },
        {
            "status": "tentative",
            "start": {"dateTime": "2026-10-20T14:00:00Z"},
            "end": {"dateTime": "2026-10-20T15:00:00Z"},
        },
        {"start": {"date": "2026-10-21"}, "end": {"date": "2026-10-22"}},
    ]

    intervals = google_busy_intervals(items)

    assert [(i.start, i.end) for i in intervals] == [
        (datetime(2026, 10, 20, 10, tzinfo=UTC), datetime(2026, 10, 20, 11, tzinfo=UTC)),
        (datetime(2026, 10, 21, tzinfo=UTC), datetime(2026, 10, 22, tzinfo=UTC)),
    ]


def test_graph_items_skip_free_and_cancelled():
    items = [
        {
            "showAs": "busy",
            "start": {"dateTime": "2026-10-20T09:30:00.0000000"},
            "end": {"dateTime": "2026-10-20T10:00:00.0000000"},
        },
        {
            "showAs": "free",
            "start": {"dateTime": "2026-10-20T11:00:00.0000000"},
            "end": {"dateTime": "2026-10-20T12:00:00.0000000"},
        },
        {
            "isCancelled": True,
            "start": {"dateTime": "2026-10-20T13:00:00.0000000"},
            "end": {"dateTime": "2026-10-20T14:00:00.0000000"},
        },
    ]

    assert graph_busy_intervals(items) == [
        BusyInterval(
            start=datetime(2026, 10, 20, 9, 30, tzinfo=UTC),
            end=datetime(2026, 10, 20, 10, tzinfo=UTC),
        )
    ]


@pytest.mark.asyncio
async def test_fetch_google_busy_intervals(httpx_mock):
    httpx_mock.add_response(
        url=GOOGLE_EVENTS,
        json={
            "items": [
                {
                    "start": {"dateTime": "2026-10-20T10:00:00+00:00"},
                    "end": {"dateTime": "2026-10-20T10:30:00+00:00"},
                }
            ]
        },
    )
    client = CalendarBusyClient(credentials_loader=google_credentials())

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert intervals == [
        BusyInterval(
            start=datetime(2026, 10, 20, 10, tzinfo=UTC),
            end=datetime(2026, 10, 20, 10, 30, tzinfo=UTC),
        )
    ]
    request = httpx_mock.get_request()
    assert request.headers["Authorization"] == "Bearer g-token"
    assert request.url.params["singleEvents"] == "true"
    assert request.url.params["timeMin"] == "2026-10-20T00:00:00+00:00"


@pytest.mark.asyncio
async def test_fetch_microsoft_busy_intervals(httpx_mock):
    httpx_mock.add_response(
        url=GRAPH_VIEW,
        json={
            "value": [
                {
                    "showAs": "busy",
                    "start": {"dateTime": "2026-10-20T15:00:00.0000000"},
                    "end": {"dateTime": "2026-10-20T16:00:00.0000000"},
                }
            ]
        },
    )
    loader = AsyncMock(return_value={"provider": "microsoft", "microsoft_access_token": "m-token"})
    client = CalendarBusyClient(credentials_loader=loader)

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert [i.start.hour for i in intervals] == [15]
    assert httpx_mock.get_request().headers["Authorization"] == "Bearer m-token"


@pytest.mark.asyncio
async def test_provider_error_degrades_to_empty(httpx_mock):
    httpx_mock.add_response(url=GOOGLE_EVENTS, status_code=401, json={"error": "invalid_token"})
    client = CalendarBusyClient(credentials_loader=google_credentials())

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert intervals == []


@pytest.mark.asyncio
async def test_no_connected_calendar_makes_no_request():
    client = CalendarBusyClient(credentials_loader=AsyncMock(return_value=None))

    assert await client.fetch_busy_intervals("host-1", START, END) == []
    await client.close()


@pytest.mark.asyncio
async def test_credential_lookup_failure_degrades_to_empty():
    client = CalendarBusyClient(credentials_loader=AsyncMock(side_effect=RuntimeError("db down")))

    assert await client.fetch_busy_intervals("host-1", START, END) == []
    await client.close()


@pytest.mark.asyncio
async def test_transient_errors_are_retried(httpx_mock, monkeypatch):
    monkeypatch.setattr("app.features.scheduling.calendar.busy_client.BACKOFF_FACTOR", 0)
    httpx_mock.add_response(url=GOOGLE_EVENTS, status_code=503)
    httpx_mock.add_response(url=GOOGLE_EVENTS, json={"items": []})
    client = CalendarBusyClient(credentials_loader=google_credentials())

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert intervals == []
    assert len(httpx_mock.get_requests()) == 2


def test_all_day_events_block_the_host_local_day():
    sydney = ZoneInfo("Australia/Sydney")
    items = [{"start": {"date": "2026-10-21"}, "end": {"date": "2026-10-22"}}]

    [interval] = google_busy_intervals(items, sydney)

    assert interval.start == datetime(2026, 10, 21, tzinfo=sydney)
    assert interval.start.astimezone(UTC) == datetime(2026, 10, 20, 13, tzinfo=UTC)
    assert interval.end == datetime(2026, 10, 22, tzinfo=sydney)


@pytest.mark.asyncio
async def test_fetch_google_uses_the_requested_zone_for_all_day_events(httpx_mock):
    sydney = ZoneInfo("Australia/Sydney")
    httpx_mock.add_response(
        url=GOOGLE_EVENTS,
        json={"items": [{"start": {"date": "2026-10-21"}, "end": {"date": "2026-10-22"}}]},
    )
    client = CalendarBusyClient(credentials_loader=google_credentials())

    intervals = await client.fetch_busy_intervals(
        "host-1", datetime(2026, 10, 21, tzinfo=sydney), datetime(2026, 10, 22, tzinfo=sydney)
    )
    await client.close()

    assert intervals[0].start.astimezone(UTC) == datetime(2026, 10, 20, 13, tzinfo=UTC)


@pytest.mark.asyncio
async def test_fetch_google_follows_page_tokens(httpx_mock):
    first_page = [
        {
            "start": {"dateTime": f"2026-10-20T{hour:02d}:00:00Z"},
            "end": {"dateTime": f"2026-10-20T{hour:02d}:30:00Z"},
        }
        for hour in range(9, 12)
    ]
    httpx_mock.add_response(
        url=GOOGLE_EVENTS, json={"items": first_page, "nextPageToken": "page-2"}
    )
    httpx_mock.add_response(
        url=GOOGLE_EVENTS,
        json={
            "items": [
                {
                    "start": {"dateTime": "2026-10-20T14:00:00Z"},
                    "end": {"dateTime": "2026-10-20T15:00:00Z"},
                }
            ]
        },
    )
    client = CalendarBusyClient(credentials_loader=google_credentials())

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert [i.start.hour for i in intervals] == [9, 10, 11, 14]
    first, second = httpx_mock.get_requests()
    assert "pageToken" not in first.url.params
    assert second.url.params["pageToken"] == "page-2"
    assert second.url.params["timeMin"] == "2026-10-20T00:00:00+00:00"


@pytest.mark.asyncio
async def test_fetch_microsoft_follows_next_links(httpx_mock):
    first_page = [
        {
            "showAs": "busy",
            "start": {"dateTime": f"2026-10-20T{hour:02d}:00:00.0000000"},
            "end": {"dateTime": f"2026-10-20T{hour:02d}:30:00.0000000"},
        }
        for hour in range(0, 10)
    ]
    next_link = "https://graph.microsoft.com/v1.0/me/calendarView?skiptoken=page-2"
    httpx_mock.add_response(
        url=GRAPH_VIEW, json={"value": first_page, "@odata.nextLink": next_link}
    )
    httpx_mock.add_response(
        url=GRAPH_VIEW,
        json={
            "value": [
                {
                    "showAs": "busy",
                    "start": {"dateTime": "2026-10-20T14:00:00.0000000"},
                    "end": {"dateTime": "2026-10-20T15:00:00.0000000"},
                }
            ]
        },
    )
    loader = AsyncMock(return_value={"provider": "microsoft", "microsoft_access_token": "m-token"})
    client = CalendarBusyClient(credentials_loader=loader)

    intervals = await client.fetch_busy_intervals("host-1", START, END)
    await client.close()

    assert len(intervals) == 11
    assert intervals[-1].start == datetime(2026, 10, 20, 14, tzinfo=UTC)
    first, second = httpx_mock.get_requests()
    assert first.headers["Prefer"] == "odata.maxpagesize=100"
    assert second.url.params["skiptoken"] == "page-2"
    assert "startDateTime" not in second.url.params
    assert second.headers["Authorization"] == "Bearer m-token"
