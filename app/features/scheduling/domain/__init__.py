"""
Domain subpackage for the scheduling core.
"""

from .errors import (
    EventTypeNotFound,
    InvalidConfiguration,
    RuleSourceUnavailable,
    SchedulingError,
)
from .models import (
    AppliedRule,
    AttendeePreferences,
    AutoConfirmDecision,
    AutonomousMode,
    AutonomousSettings,
    AvailabilityResult,
    BookingIntent,
    BookingRecord,
    BusyInterval,
    CandidateSlot,
    EventTypeConfig,
    PatternKey,
    PatternType,
    RuleEvaluation,
    RuleType,
    SchedulingRule,
    ScoredSlot,
    WorkingHours,
)

__all__ = [
    "AppliedRule",
    "AttendeePreferences",
    "AutoConfirmDecision",
    "AutonomousMode",
    "AutonomousSettings",
    "AvailabilityResult",
    "BookingIntent",
    "BookingRecord",
    "BusyInterval",
    "CandidateSlot",
    "EventTypeConfig",
    "EventTypeNotFound",
    "InvalidConfiguration",
    "PatternKey",
    "PatternType",
    "RuleEvaluation",
    "RuleSourceUnavailable",
    "RuleType",
    "SchedulingError",
    "ScoredSlot",
    "WorkingHours",
]
