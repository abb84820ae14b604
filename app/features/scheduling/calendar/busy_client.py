"""
Calendar busy-time client.

Reads a host's external calendar (Google Calendar or Microsoft Graph) and
reduces it to opaque busy intervals for the conflict resolver. Only the
time blocks leave this module; titles and attendees are never kept.
"""

import asyncio
from datetime import UTC, datetime, tzinfo
from typing import Any

import httpx

from app.config import settings
from app.features.scheduling.domain.models import BusyInterval
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3
BACKOFF_FACTOR = 1
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
GOOGLE_MAX_RESULTS = 250
GRAPH_PAGE_SIZE = 100
MAX_PAGES = 20


class CalendarBusyError(Exception):
    """Raised when a provider calendar cannot be read."""

    def __init__(self, message: str, provider: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


def _parse_google_time(value: dict, tz: tzinfo | None = None) -> datetime | None:
    if "dateTime" in value:
        return datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
    if "date" in value:
        # All-day events block the whole day in the host's zone.
        return datetime.fromisoformat(value["date"]).replace(tzinfo=tz or UTC)
    return None


def _parse_graph_time(value: dict) -> datetime | None:
    raw = value.get("dateTime")
    if not raw:
        return None
    # Graph returns seven fractional digits and no offset (UTC by default).
    head, _, fraction = raw.partition(".")
    parsed = datetime.fromisoformat(f"{head}.{fraction[:6]}" if fraction else head)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def google_busy_intervals(
    items: list[dict[str, Any]], tz: tzinfo | None = None
) -> list[BusyInterval]:
    """Opaque, confirmed events only; transparent or tentative ones do not block."""
    intervals = []
    for item in items:
        if item.get("transparency", "opaque") != "opaque":
            continue
        if item.get("status", "confirmed") != "confirmed":
            continue
        start = _parse_google_time(item.get("start", {}), tz)
        end = _parse_google_time(item.get("end", {}), tz)
        if start and end:
            intervals.append(BusyInterval(start=start, end=end))
    return intervals


def graph_busy_intervals(items: list[dict[str, Any]]) -> list[BusyInterval]:
    intervals = []
    for item in items:
        if item.get("isCancelled") or item.get("showAs") == "free":
            continue
        start = _parse_graph_time(item.get("start", {}))
        end = _parse_graph_time(item.get("end", {}))
        if start and end:
            intervals.append(BusyInterval(start=start, end=end))
    return intervals


class CalendarBusyClient:
    """
    Busy-interval source backed by the host's connected calendar.

    `fetch_busy_intervals` never raises: an unreachable provider, missing
    credentials or a malformed payload all degrade to an empty list so that
    availability is still served from existing bookings alone. Both
    providers are read page by page; all-day events are placed in the zone
    of `start`.
    """

    def __init__(self, credentials_loader=None, http_client: httpx.AsyncClient | None = None):
        if credentials_loader is None:
            from app.features.scheduling.availability.repository import AvailabilityRepository

            credentials_loader = AvailabilityRepository.fetch_calendar_credentials
        self._load_credentials = credentials_loader
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.CALENDAR_REQUEST_TIMEOUT),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_busy_intervals(
        self, host_id: str, start: datetime, end: datetime
    ) -> list[BusyInterval]:
        try:
            credentials = await self._load_credentials(host_id)
            if not credentials:
                logger.debug("No calendar connected, skipping busy fetch", host_id=host_id)
                return []

            provider = credentials.get("provider")
            if provider == "google" and credentials.get("google_access_token"):
                intervals = await self._fetch_google(
                    credentials["google_access_token"], start, end
                )
            elif provider == "microsoft" and credentials.get("microsoft_access_token"):
                intervals = await self._fetch_microsoft(
                    credentials["microsoft_access_token"], start, end
                )
            else:
                logger.debug(
                    "Calendar provider not usable, skipping busy fetch",
                    host_id=host_id,
                    provider=provider,
                )
                return []

            logger.info(
                "Calendar busy intervals fetched",
                host_id=host_id,
                provider=provider,
                interval_count=len(intervals),
            )
            return intervals

        except Exception as e:
            logger.warning(
                "Calendar fetch failed, continuing without calendar",
                host_id=host_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

    async def _fetch_google(
        self, access_token: str, start: datetime, end: datetime
    ) -> list[BusyInterval]:
        url = f"{settings.GOOGLE_CALENDAR_API_BASE_URL}/calendars/primary/events"
        params = {
            "timeMin": start.astimezone(UTC).isoformat(),
            "timeMax": end.astimezone(UTC).isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": GOOGLE_MAX_RESULTS,
        }
        items: list[dict[str, Any]] = []
        for _ in range(MAX_PAGES):
            response = await self._request_with_retry(
                "GET", url, headers=self._auth_headers(access_token), params=params
            )
            data = self._handle_api_response(response, "google")
            items.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}
        else:
            logger.warning("Google calendar page limit reached", max_pages=MAX_PAGES)

        return google_busy_intervals(items, start.tzinfo)

    async def _fetch_microsoft(
        self, access_token: str, start: datetime, end: datetime
    ) -> list[BusyInterval]:
        url: str | None = f"{settings.MICROSOFT_GRAPH_API_BASE_URL}/me/calendarView"
        params: dict | None = {
            "startDateTime": start.astimezone(UTC).isoformat(),
            "endDateTime": end.astimezone(UTC).isoformat(),
            "$select": "start,end,showAs,isCancelled",
        }
        headers = {
            **self._auth_headers(access_token),
            "Prefer": f"odata.maxpagesize={GRAPH_PAGE_SIZE}",
        }
        items: list[dict[str, Any]] = []
        for _ in range(MAX_PAGES):
            response = await self._request_with_retry("GET", url, headers=headers, params=params)
            data = self._handle_api_response(response, "microsoft")
            items.extend(data.get("value", []))

            # The next link already carries the query
            url = data.get("@odata.nextLink")
            if not url:
                break
            params = None
        else:
            logger.warning("Microsoft calendar page limit reached", max_pages=MAX_PAGES)

        return graph_busy_intervals(items)

    def _auth_headers(self, access_token: str) -> dict:
        return {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(method, url, **kwargs)
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        "Calendar request retrying",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "Calendar request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError("Calendar retry loop exhausted")

    def _handle_api_response(self, response: httpx.Response, provider: str) -> dict:
        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                raise CalendarBusyError(f"Invalid response format: {e}", provider) from e

        raise CalendarBusyError(
            f"Calendar API error (HTTP {response.status_code})",
            provider,
            status_code=response.status_code,
        )
