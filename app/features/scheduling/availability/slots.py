"""
Slot generation.

Lays a fixed-length grid over the working-hours template of a single
day. Pure: the same inputs always yield the same list.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta, tzinfo

from app.features.scheduling.domain.errors import InvalidConfiguration
from app.features.scheduling.domain.models import CandidateSlot, EventTypeConfig, WorkingHours


def validate_event_type(config: EventTypeConfig) -> None:
    if config.duration <= 0:
        raise InvalidConfiguration(f"Event duration must be positive (got {config.duration})")
    if config.slot_interval <= 0:
        raise InvalidConfiguration(
            f"Slot interval must be positive (got {config.slot_interval})"
        )


def generate_candidate_slots(
    day: date,
    config: EventTypeConfig,
    working_hours: WorkingHours | None = None,
    tz: tzinfo | None = None,
) -> list[CandidateSlot]:
    """
    Enumerate candidate windows for `day`.

    Candidates start at the template start and advance by `slot_interval`.
    A window whose end would pass the template end is dropped, so the
    trailing partial window never appears.

    Raises:
        InvalidConfiguration: if duration or slot interval is not positive
    """
    validate_event_type(config)

    hours = working_hours or WorkingHours()
    zone = tz or UTC
    window_start = datetime.combine(day, hours.start, tzinfo=zone)
    window_end = datetime.combine(day, hours.end, tzinfo=zone)

    return list(
        _iter_slots(
            window_start,
            window_end,
            timedelta(minutes=config.duration),
            timedelta(minutes=config.slot_interval),
        )
    )


def _iter_slots(
    window_start: datetime, window_end: datetime, length: timedelta, step: timedelta
) -> Iterator[CandidateSlot]:
    cursor = window_start
    while cursor + length <= window_end:
        yield CandidateSlot(start=cursor, end=cursor + length)
        cursor += step
