"""
Auto-confirm policy.

Decides whether a booking that passed the rule engine can be confirmed
without the host looking at it. Domain overrides run last and in a fixed
order: a VIP domain forces approval, then a blocked domain forces
decline, so a domain listed as both ends up declined.
"""

from __future__ import annotations

from app.features.scheduling.domain.models import (
    AutoConfirmDecision,
    AutonomousMode,
    AutonomousSettings,
    BookingIntent,
    RuleEvaluation,
    email_domain,
    weekday_name,
)

MANUAL_REASON = "Manual mode enabled"
MEETS_CRITERIA = "Meets all criteria"
FAILS_CRITERIA = "Does not meet criteria"

STATUS_CONFIRMED = "confirmed"
STATUS_PENDING = "pending"


def _downgrade_reasons(
    settings: AutonomousSettings, intent: BookingIntent, daily_confirmed_count: int | None
) -> list[str]:
    reasons = []

    if settings.max_duration and intent.duration > settings.max_duration:
        reasons.append(
            f"Duration {intent.duration}min exceeds limit {settings.max_duration}min"
        )

    start, end = settings.allowed_hours_start, settings.allowed_hours_end
    if start is not None and end is not None:
        hour = intent.start_time.hour
        if hour < start or hour >= end:
            reasons.append(f"Time {hour}:00 outside allowed hours {start}-{end}")

    day = weekday_name(intent.start_time)
    if day in settings.blocked_days:
        reasons.append(f"{day} is blocked")

    if (
        settings.max_daily_bookings
        and daily_confirmed_count is not None
        and daily_confirmed_count >= settings.max_daily_bookings
    ):
        reasons.append(f"Daily limit of {settings.max_daily_bookings} bookings reached")

    return reasons


def decide(
    settings: AutonomousSettings,
    intent: BookingIntent,
    daily_confirmed_count: int | None = None,
) -> AutoConfirmDecision:
    """
    Evaluate the autonomous-mode settings against a booking.

    `daily_confirmed_count` is the number of confirmed bookings the host
    already has on the booking's date; pass None when no daily cap applies.
    """
    if settings.mode == AutonomousMode.MANUAL:
        return AutoConfirmDecision(auto_confirm=False, reason=MANUAL_REASON, mode=settings.mode)

    reasons = _downgrade_reasons(settings, intent, daily_confirmed_count)
    confirm = not reasons

    domain = email_domain(intent.attendee_email)
    if domain and domain in settings.vip_domains:
        confirm = True
        reasons = [f"VIP domain: {domain}"]
    if domain and domain in settings.blocked_domains:
        confirm = False
        reasons = [f"Blocked domain: {domain}"]

    reason = "; ".join(reasons) or (MEETS_CRITERIA if confirm else FAILS_CRITERIA)
    return AutoConfirmDecision(
        auto_confirm=confirm,
        reason=reason,
        mode=settings.mode,
        held=settings.mode == AutonomousMode.SUGGEST,
    )


def resolve_booking_status(rule_eval: RuleEvaluation, decision: AutoConfirmDecision) -> str:
    """Final status of a non-blocked booking."""
    if rule_eval.auto_approved:
        return STATUS_CONFIRMED
    if decision.held:
        return STATUS_PENDING
    if decision.mode == AutonomousMode.AUTO and not decision.auto_confirm:
        return STATUS_PENDING
    return STATUS_CONFIRMED
