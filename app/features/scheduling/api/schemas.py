"""
Scheduling API request and response models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# =================================================================
# AVAILABILITY
# =================================================================


class SlotResponse(BaseModel):
    start: datetime = Field(..., description="Slot start")
    end: datetime = Field(..., description="Slot end")


class AvailableSlotsResponse(BaseModel):
    success: bool = Field(default=True)
    date: str = Field(..., description="Requested date (YYYY-MM-DD)")
    timezone: str = Field(..., description="Timezone the slots were computed in")
    slots: list[SlotResponse] = Field(default_factory=list, description="Bookable slots")
    message: str | None = Field(None, description="Why no slots are offered, if empty")


# =================================================================
# BOOKING DECISIONS
# =================================================================


class BookingDecisionRequest(BaseModel):
    """A prospective booking to run through rules and auto-confirm."""

    start_time: datetime = Field(..., description="Requested start time")
    duration: int = Field(default=30, ge=1, le=1440, description="Duration in minutes")
    title: str = Field(default="", max_length=200, description="Booking title")
    event_name: str = Field(default="", max_length=200, description="Event type name")
    attendee_email: str = Field(default="", max_length=320, description="Attendee email")
    attendee_name: str = Field(default="", max_length=200, description="Attendee name")
    notes: str = Field(default="", max_length=2000, description="Attendee notes")
    timezone: str | None = Field(None, description="Host timezone (default: stored host zone)")


class AppliedRuleResponse(BaseModel):
    rule_id: str | None = None
    rule: str
    action: str


class AutoConfirmResponse(BaseModel):
    auto_confirm: bool = Field(..., description="Policy outcome")
    reason: str = Field(..., description="Semicolon-joined reasons")
    mode: str = Field(..., description="manual, suggest or auto")
    held: bool = Field(default=False, description="Suggest mode: outcome is a recommendation only")


class BookingDecisionResponse(BaseModel):
    status: str = Field(..., description="confirmed, pending or blocked")
    blocked: bool
    block_reason: str | None = None
    auto_approved: bool = Field(default=False, description="A rule approved the booking")
    applied_rules: list[AppliedRuleResponse] = Field(default_factory=list)
    modified_booking: dict[str, Any] = Field(..., description="Booking after rule actions")
    auto_confirm: AutoConfirmResponse | None = None
    pattern_recorded: bool = False


# =================================================================
# SMART SUGGESTIONS / PATTERNS
# =================================================================


class SmartSuggestionsRequest(BaseModel):
    duration: int = Field(default=30, description="Meeting length in minutes (5-480)")
    attendee_email: str | None = Field(None, description="Attendee to personalise for")
    timezone: str | None = Field(None, description="Host timezone (default: stored host zone)")
    max_slots: int = Field(default=5, ge=1, le=20, description="Suggestions to return")


class ScoredSlotResponse(BaseModel):
    start: datetime
    end: datetime
    score: int
    reasoning: str


class SmartSuggestionsResponse(BaseModel):
    suggestions: list[ScoredSlotResponse] = Field(default_factory=list)


class PatternsResponse(BaseModel):
    patterns: dict[str, dict[str, Any]] = Field(default_factory=dict)
    analyzed: bool = Field(default=True, description="False when there was no booking history")


# =================================================================
# RULES
# =================================================================


class CreateRuleRequest(BaseModel):
    rule_text: str = Field(..., max_length=500, description="Rule in plain language")
    priority: int = Field(default=0, ge=0, le=100, description="Higher runs first")


class RuleResponse(BaseModel):
    id: str | None = None
    rule_type: str
    rule_text: str
    priority: int
    is_active: bool
    conditions: dict[str, Any] = Field(default_factory=dict)
    actions: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


class CreateRuleResponse(BaseModel):
    rule: RuleResponse
    parsed: dict[str, Any] = Field(..., description="What the parser understood")


class RulesListResponse(BaseModel):
    rules: list[RuleResponse] = Field(default_factory=list)


# =================================================================
# AUTONOMOUS SETTINGS
# =================================================================


class AutoConfirmRules(BaseModel):
    max_duration: int | None = Field(None, ge=1, description="Longest auto-confirmable booking")
    allowed_hours_start: int | None = Field(None, ge=0, le=23)
    allowed_hours_end: int | None = Field(None, ge=1, le=24)
    blocked_days: list[str] = Field(default_factory=list, description="Weekday names")
    max_daily_bookings: int | None = Field(None, ge=1)
    vip_domains: list[str] = Field(default_factory=list)
    blocked_domains: list[str] = Field(default_factory=list)


class AutonomousSettingsRequest(BaseModel):
    mode: str = Field(..., description="manual, suggest or auto")
    rules: AutoConfirmRules = Field(default_factory=AutoConfirmRules)


class AutonomousSettingsResponse(BaseModel):
    mode: str
    rules: AutoConfirmRules
