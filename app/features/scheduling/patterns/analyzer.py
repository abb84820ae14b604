"""
Booking pattern analysis.

Turns a host's recent booking history into four summaries (preferred
hours, preferred days, typical duration, acceptance rate). The summaries
are recomputed from scratch each time and replace whatever was stored.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any

from app.features.scheduling.domain.models import (
    AttendeePreferences,
    BookingRecord,
    PatternType,
    day_of_week,
)

COMMON_DURATIONS = (15, 30, 45, 60, 90, 120)
TOP_HOURS = 5
ACCEPTED_STATUSES = ("confirmed", "completed")


@dataclass(slots=True)
class PatternAnalysis:
    preferred_hours: dict[str, Any]
    preferred_days: dict[str, Any]
    avg_duration: dict[str, Any]
    acceptance_rate: dict[str, Any]

    def summaries(self) -> dict[PatternType, dict[str, Any]]:
        return {
            PatternType.PREFERRED_HOURS: self.preferred_hours,
            PatternType.PREFERRED_DAYS: self.preferred_days,
            PatternType.AVG_DURATION: self.avg_duration,
            PatternType.ACCEPTANCE_RATE: self.acceptance_rate,
        }

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {pattern.value: data for pattern, data in self.summaries().items()}


def ranked(counts: Counter) -> list[tuple[int, int]]:
    """(key, count) pairs by count descending, ties broken by key ascending."""
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def snap_duration(minutes: float) -> int:
    # min() keeps the first of equal distances, i.e. the smaller duration
    return min(COMMON_DURATIONS, key=lambda common: abs(common - minutes))


def compute_acceptance_rate(bookings: Sequence[BookingRecord]) -> dict[str, Any]:
    total = len(bookings)
    accepted = sum(1 for b in bookings if b.status in ACCEPTED_STATUSES)
    rate = accepted / total * 100 if total else 100.0
    return {"rate": rate, "totalBookings": total, "confirmedCount": accepted}


def _localize(moment: datetime, tz: tzinfo | None) -> datetime:
    return moment.astimezone(tz) if tz else moment


def analyze_booking_patterns(
    bookings: Iterable[BookingRecord], tz: tzinfo | None = None
) -> PatternAnalysis | None:
    """
    Summarise `bookings`, or return None when there is no history at all.

    Hours and weekdays are read in `tz` (the host's zone); weekdays use
    0 = Sunday.
    """
    bookings = list(bookings)
    if not bookings:
        return None

    starts = [_localize(b.start_time, tz) for b in bookings]

    hour_counts = Counter(start.hour for start in starts)
    top_hours = [{"hour": hour, "count": count} for hour, count in ranked(hour_counts)[:TOP_HOURS]]
    preferred_hours = {
        "topHours": top_hours,
        "peakHour": top_hours[0]["hour"],
        "distribution": {str(hour): count for hour, count in sorted(hour_counts.items())},
    }

    day_counts = Counter(day_of_week(start) for start in starts)
    preferred_days = {
        "topDays": [{"day": day, "count": count} for day, count in ranked(day_counts)],
        "distribution": {str(day): count for day, count in sorted(day_counts.items())},
    }

    durations = [b.duration_minutes for b in bookings]
    average = sum(durations) / len(durations)
    avg_duration = {
        "average": average,
        "mostCommon": snap_duration(average),
        "distribution": durations,
    }

    return PatternAnalysis(
        preferred_hours=preferred_hours,
        preferred_days=preferred_days,
        avg_duration=avg_duration,
        acceptance_rate=compute_acceptance_rate(bookings),
    )


def attendee_preferences(
    start_times: Iterable[datetime], tz: tzinfo | None = None
) -> AttendeePreferences | None:
    """Hours and weekdays an attendee has booked before, most frequent first."""
    starts = [_localize(start, tz) for start in start_times]
    if not starts:
        return None
    return AttendeePreferences(
        preferred_hours=[hour for hour, _ in ranked(Counter(s.hour for s in starts))],
        preferred_days=[day for day, _ in ranked(Counter(day_of_week(s) for s in starts))],
    )
