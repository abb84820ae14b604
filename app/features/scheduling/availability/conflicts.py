"""
Conflict resolution for candidate slots.

Buffers widen the candidate, not the busy block: a slot conflicts with
a busy interval iff

    slot.start - buffer_before < busy.end  and  slot.end + buffer_after > busy.start

so intervals that merely touch are not conflicts.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

from app.features.scheduling.domain.models import (
    AvailabilityResult,
    BusyInterval,
    CandidateSlot,
    EventTypeConfig,
    WorkingHours,
)

from .slots import generate_candidate_slots


def overlaps(
    slot: CandidateSlot,
    busy: BusyInterval,
    buffer_before: timedelta = timedelta(0),
    buffer_after: timedelta = timedelta(0),
) -> bool:
    return slot.start - buffer_before < busy.end and slot.end + buffer_after > busy.start


def resolve_conflicts(
    slots: Iterable[CandidateSlot],
    busy_intervals: Iterable[BusyInterval],
    buffer_before: int = 0,
    buffer_after: int = 0,
    earliest_allowed: datetime | None = None,
) -> list[CandidateSlot]:
    """
    Keep the slots that are clear of every busy interval and start no
    earlier than `earliest_allowed`. Order of `slots` is preserved.

    Args:
        buffer_before: minutes that must stay free before a slot
        buffer_after: minutes that must stay free after a slot
    """
    busy = tuple(busy_intervals)
    before = timedelta(minutes=buffer_before)
    after = timedelta(minutes=buffer_after)

    free = []
    for slot in slots:
        if earliest_allowed is not None and slot.start < earliest_allowed:
            continue
        if any(overlaps(slot, interval, before, after) for interval in busy):
            continue
        free.append(slot)
    return free


def check_booking_window(requested_date: date, now: datetime, max_days_ahead: int) -> str | None:
    """Return an explanation when `requested_date` is beyond the booking horizon."""
    last_bookable = now.date() + timedelta(days=max_days_ahead)
    if requested_date > last_bookable:
        return f"Bookings are only available up to {max_days_ahead} days in advance"
    return None


def compute_available_slots(
    requested_date: date,
    config: EventTypeConfig,
    busy_intervals: Iterable[BusyInterval],
    now: datetime,
    working_hours: WorkingHours | None = None,
    tz: tzinfo | None = None,
) -> AvailabilityResult:
    """Full single-day pipeline: horizon check, slot grid, conflict filter."""
    zone = tz or UTC
    local_now = now.astimezone(zone)

    message = check_booking_window(requested_date, local_now, config.max_days_ahead)
    if message:
        return AvailabilityResult(slots=[], message=message)

    candidates = generate_candidate_slots(requested_date, config, working_hours, zone)
    earliest_allowed = now + timedelta(hours=config.min_notice_hours)
    free = resolve_conflicts(
        candidates,
        busy_intervals,
        buffer_before=config.buffer_before,
        buffer_after=config.buffer_after,
        earliest_allowed=earliest_allowed,
    )

    if not free:
        return AvailabilityResult(slots=[], message="No available times on this date")
    return AvailabilityResult(slots=free)
