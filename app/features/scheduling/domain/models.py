"""
Domain models for the scheduling core.

Plain dataclasses shared by the availability, rules, auto-confirm,
pattern and suggestion packages. Repositories build them from rows and
the pure functions consume them; none of them perform I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Any

WEEKDAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")


def day_of_week(moment: datetime) -> int:
    """Day index with 0 = Sunday ... 6 = Saturday."""
    return moment.isoweekday() % 7


def weekday_name(moment: datetime) -> str:
    return WEEKDAY_NAMES[day_of_week(moment)]


def email_domain(email: str | None) -> str:
    """Lower-cased domain part of an address, or '' when there is none."""
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


@dataclass(frozen=True, slots=True)
class BusyInterval:
    """Opaque busy block from a calendar or an existing booking."""

    start: datetime
    end: datetime


@dataclass(frozen=True, slots=True)
class CandidateSlot:
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True, slots=True)
class WorkingHours:
    """Daily template the slot grid is laid over."""

    start: time = time(9, 0)
    end: time = time(17, 0)


@dataclass(frozen=True, slots=True)
class EventTypeConfig:
    duration: int
    buffer_before: int = 0
    buffer_after: int = 0
    slot_interval: int = 30
    min_notice_hours: float = 1
    max_days_ahead: int = 60

    @classmethod
    def from_row(cls, row: dict) -> EventTypeConfig:
        """Build from an event_types row, applying the booking-page defaults."""
        duration = row["duration"]
        return cls(
            duration=duration,
            buffer_before=row.get("buffer_before") or 0,
            buffer_after=row.get("buffer_after") or 0,
            slot_interval=row.get("slot_interval") or min(duration, 60),
            min_notice_hours=row.get("min_notice_hours") or 1,
            max_days_ahead=row.get("max_days_ahead") or 60,
        )


@dataclass(slots=True)
class AvailabilityResult:
    """Free slots for one day; `message` explains an empty answer."""

    slots: list[CandidateSlot]
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ScoredSlot:
    start: datetime
    end: datetime
    score: int
    reasoning: str

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "score": self.score,
            "reasoning": self.reasoning,
        }


# =================================================================
# SCHEDULING RULES
# =================================================================


class RuleType(str, Enum):
    BUFFER = "buffer"
    ROUTING = "routing"
    PRIORITY = "priority"
    AVAILABILITY = "availability"
    AUTO_RESPONSE = "auto_response"
    # Produced by the text parser when nothing is recognised; never acts.
    CUSTOM = "custom"


@dataclass(slots=True)
class SchedulingRule:
    rule_type: str
    rule_text: str = ""
    priority: int = 0
    is_active: bool = True
    conditions: dict[str, Any] = field(default_factory=dict)
    actions: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> SchedulingRule:
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            rule_type=row.get("rule_type") or RuleType.CUSTOM.value,
            rule_text=row.get("rule_text") or "",
            priority=row.get("priority") or 0,
            is_active=bool(row.get("is_active", True)),
            conditions=row.get("conditions") or {},
            actions=row.get("actions") or {},
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rule_type": self.rule_type,
            "rule_text": self.rule_text,
            "priority": self.priority,
            "is_active": self.is_active,
            "conditions": self.conditions,
            "actions": self.actions,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(slots=True)
class BookingIntent:
    """A prospective booking as seen by the rule engine and auto-confirm policy."""

    start_time: datetime
    duration: int = 30
    title: str = ""
    event_name: str = ""
    attendee_email: str = ""
    attendee_name: str = ""
    notes: str = ""
    buffer_minutes: int | None = None
    buffer_position: str | None = None
    assigned_to: list[str] | None = None
    priority: str | None = None

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "duration": self.duration,
            "title": self.title,
            "event_name": self.event_name,
            "attendee_email": self.attendee_email,
            "attendee_name": self.attendee_name,
            "notes": self.notes,
            "buffer_minutes": self.buffer_minutes,
            "buffer_position": self.buffer_position,
            "assigned_to": self.assigned_to,
            "priority": self.priority,
        }


@dataclass(frozen=True, slots=True)
class AppliedRule:
    rule_id: str | None
    rule: str
    action: str


@dataclass(slots=True)
class RuleEvaluation:
    modified_intent: BookingIntent
    applied_rules: list[AppliedRule] = field(default_factory=list)
    blocked: bool = False
    block_reason: str | None = None
    auto_approved: bool = False

    @classmethod
    def passthrough(cls, intent: BookingIntent) -> RuleEvaluation:
        """Evaluation equivalent to having no rules at all."""
        return cls(modified_intent=intent)


# =================================================================
# AUTONOMOUS MODE
# =================================================================


class AutonomousMode(str, Enum):
    MANUAL = "manual"
    SUGGEST = "suggest"
    AUTO = "auto"


@dataclass(slots=True)
class AutonomousSettings:
    mode: AutonomousMode = AutonomousMode.MANUAL
    max_duration: int | None = None
    allowed_hours_start: int | None = None
    allowed_hours_end: int | None = None
    blocked_days: list[str] = field(default_factory=list)
    max_daily_bookings: int | None = None
    vip_domains: list[str] = field(default_factory=list)
    blocked_domains: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, mode: str | None, rules: dict | None) -> AutonomousSettings:
        rules = rules or {}
        try:
            parsed_mode = AutonomousMode(mode or AutonomousMode.MANUAL.value)
        except ValueError:
            parsed_mode = AutonomousMode.MANUAL
        return cls(
            mode=parsed_mode,
            max_duration=rules.get("max_duration"),
            allowed_hours_start=rules.get("allowed_hours_start"),
            allowed_hours_end=rules.get("allowed_hours_end"),
            blocked_days=[d.lower() for d in rules.get("blocked_days") or []],
            max_daily_bookings=rules.get("max_daily_bookings"),
            vip_domains=[d.lower() for d in rules.get("vip_domains") or []],
            blocked_domains=[d.lower() for d in rules.get("blocked_domains") or []],
        )

    def rules_dict(self) -> dict:
        """The auto_confirm_rules JSON payload, omitting unset keys."""
        payload = {
            "max_duration": self.max_duration,
            "allowed_hours_start": self.allowed_hours_start,
            "allowed_hours_end": self.allowed_hours_end,
            "blocked_days": self.blocked_days,
            "max_daily_bookings": self.max_daily_bookings,
            "vip_domains": self.vip_domains,
            "blocked_domains": self.blocked_domains,
        }
        return {key: value for key, value in payload.items() if value not in (None, [])}


@dataclass(frozen=True, slots=True)
class AutoConfirmDecision:
    auto_confirm: bool
    reason: str
    mode: AutonomousMode
    # Suggest mode surfaces `auto_confirm` as a recommendation only.
    held: bool = False


# =================================================================
# BOOKING PATTERNS
# =================================================================


class PatternType(str, Enum):
    PREFERRED_HOURS = "preferred_hours"
    PREFERRED_DAYS = "preferred_days"
    AVG_DURATION = "avg_duration"
    ACCEPTANCE_RATE = "acceptance_rate"


@dataclass(frozen=True, slots=True)
class PatternKey:
    day_of_week: int
    hour_of_day: int
    duration: int


@dataclass(frozen=True, slots=True)
class BookingRecord:
    """A historical booking used for pattern analysis."""

    start_time: datetime
    end_time: datetime
    status: str
    attendee_email: str | None = None

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time) / timedelta(minutes=1)


@dataclass(slots=True)
class AttendeePreferences:
    """Hours and weekdays an attendee has historically booked."""

    preferred_hours: list[int] = field(default_factory=list)
    preferred_days: list[int] = field(default_factory=list)
