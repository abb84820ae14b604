"""
Heuristic slot scorer for smart suggestions.

Each slot starts at BASE_SCORE and every applicable adjustment below is
added on top; adjustments stack. The deltas are part of the public
behaviour, so changing one changes the ranking users see.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, tzinfo
from typing import Any

from app.features.scheduling.domain.models import (
    AttendeePreferences,
    CandidateSlot,
    PatternType,
    ScoredSlot,
    day_of_week,
)

BASE_SCORE = 100
DEFAULT_MAX_SLOTS = 5

USER_HOUR_BONUS = 30
USER_DAY_BONUS = 20
ATTENDEE_HOUR_BONUS = 20
ATTENDEE_DAY_BONUS = 15
MORNING_BONUS = 15
LATE_PENALTY = -10
LUNCH_PENALTY = -15
MIDWEEK_BONUS = 10
SOON_BONUS = 5

USER_TOP_HOURS = 5
USER_TOP_DAYS = 3
MORNING_HOURS = range(9, 12)
LATE_HOUR = 16
LUNCH_HOUR = 12
MIDWEEK_DAYS = (2, 3, 4)
SOON_WINDOW = timedelta(days=2)

FALLBACK_REASON = "Available time"


def _user_top_hours(user_patterns: Mapping[str, Any] | None) -> set[int] | None:
    summary = (user_patterns or {}).get(PatternType.PREFERRED_HOURS.value) or {}
    top = summary.get("topHours")
    if not top:
        return None
    return {int(entry["hour"]) for entry in top[:USER_TOP_HOURS]}


def _user_top_days(user_patterns: Mapping[str, Any] | None) -> set[int] | None:
    summary = (user_patterns or {}).get(PatternType.PREFERRED_DAYS.value) or {}
    top = summary.get("topDays")
    if not top:
        return None
    return {int(entry["day"]) for entry in top[:USER_TOP_DAYS]}


def score_slot(
    slot: CandidateSlot,
    now: datetime,
    user_hours: set[int] | None = None,
    user_days: set[int] | None = None,
    attendee: AttendeePreferences | None = None,
    tz: tzinfo | None = None,
) -> ScoredSlot:
    local = slot.start.astimezone(tz) if tz else slot.start
    hour = local.hour
    day = day_of_week(local)

    score = BASE_SCORE
    reasons: list[str] = []

    def adjust(delta: int, reason: str) -> None:
        nonlocal score
        score += delta
        reasons.append(reason)

    if user_hours and hour in user_hours:
        adjust(USER_HOUR_BONUS, "Your preferred meeting time")
    if user_days and day in user_days:
        adjust(USER_DAY_BONUS, "Your preferred day")
    if attendee:
        if hour in attendee.preferred_hours:
            adjust(ATTENDEE_HOUR_BONUS, "Attendee's preferred time")
        if day in attendee.preferred_days:
            adjust(ATTENDEE_DAY_BONUS, "Attendee's preferred day")
    if hour in MORNING_HOURS:
        adjust(MORNING_BONUS, "Morning energy boost")
    if hour >= LATE_HOUR:
        adjust(LATE_PENALTY, "Late in the day")
    if hour == LUNCH_HOUR:
        adjust(LUNCH_PENALTY, "Lunch time")
    if day in MIDWEEK_DAYS:
        adjust(MIDWEEK_BONUS, "Mid-week focus time")
    if slot.start - now <= SOON_WINDOW:
        adjust(SOON_BONUS, "Soon available")

    return ScoredSlot(
        start=slot.start,
        end=slot.end,
        score=score,
        reasoning=", ".join(reasons) or FALLBACK_REASON,
    )


def score_slots(
    slots: Iterable[CandidateSlot],
    user_patterns: Mapping[str, Any] | None,
    attendee_patterns: AttendeePreferences | None,
    now: datetime,
    max_slots: int = DEFAULT_MAX_SLOTS,
    tz: tzinfo | None = None,
) -> list[ScoredSlot]:
    """
    Score and rank `slots`, best first, keeping at most `max_slots`.

    Missing user patterns or attendee preferences simply skip their
    adjustments. Equal scores keep the input (chronological) order.
    """
    user_hours = _user_top_hours(user_patterns)
    user_days = _user_top_days(user_patterns)

    scored = [
        score_slot(slot, now, user_hours, user_days, attendee_patterns, tz) for slot in slots
    ]
    # sorted() is stable, so ties keep their original positions
    scored = sorted(scored, key=lambda s: s.score, reverse=True)
    return scored[:max_slots]
