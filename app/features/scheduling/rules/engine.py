"""
Scheduling rule engine.

Every active rule whose conditions match is applied, in priority order.
This is not first-match-wins: effects accumulate, later
rules overwrite fields set by earlier ones, and the `blocked` /
`auto_approved` flags stay set once any rule raises them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from app.features.scheduling.domain.models import (
    AppliedRule,
    BookingIntent,
    RuleEvaluation,
    RuleType,
    SchedulingRule,
    day_of_week,
    weekday_name,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class _Accumulator:
    intent: BookingIntent
    applied: list[AppliedRule] = field(default_factory=list)
    blocked: bool = False
    block_reason: str | None = None
    auto_approved: bool = False

    def record(self, rule: SchedulingRule, action: str) -> None:
        self.applied.append(AppliedRule(rule_id=rule.id, rule=rule.rule_text, action=action))

    def block(self, reason: str) -> None:
        self.blocked = True
        self.block_reason = reason

    def result(self) -> RuleEvaluation:
        return RuleEvaluation(
            modified_intent=self.intent,
            applied_rules=self.applied,
            blocked=self.blocked,
            block_reason=self.block_reason,
            auto_approved=self.auto_approved,
        )


def conditions_match(conditions: dict, intent: BookingIntent) -> bool:
    """AND of every condition present; no conditions means match."""
    event_type = conditions.get("event_type")
    if event_type:
        name = (intent.event_name or intent.title or "").lower()
        if str(event_type).lower() not in name:
            return False

    domain = conditions.get("email_domain")
    if domain:
        email = (intent.attendee_email or "").lower()
        if not email.endswith("@" + str(domain).lower()):
            return False

    required_day = conditions.get("day_of_week")
    if required_day is not None:
        if day_of_week(intent.start_time) != int(required_day):
            return False

    return True


def _apply_buffer(acc: _Accumulator, rule: SchedulingRule) -> None:
    minutes = rule.actions.get("buffer_minutes")
    if not minutes:
        return
    minutes = int(minutes)
    acc.intent.buffer_minutes = minutes
    acc.intent.buffer_position = rule.actions.get("buffer_position") or "after"
    acc.record(rule, f"Added {minutes}min buffer")


def _apply_routing(acc: _Accumulator, rule: SchedulingRule) -> None:
    assignees = rule.actions.get("assign_to") or []
    if not assignees:
        return
    assignees = [str(a) for a in assignees]
    acc.intent.assigned_to = assignees
    acc.record(rule, f"Routed to {', '.join(assignees)}")


def _apply_priority(acc: _Accumulator, rule: SchedulingRule) -> None:
    level = rule.actions.get("priority_level")
    if not level:
        return
    acc.intent.priority = level
    acc.record(rule, f"Set priority: {level}")


def _apply_availability(acc: _Accumulator, rule: SchedulingRule) -> None:
    block_days = [str(d).lower() for d in rule.actions.get("block_days") or []]
    if weekday_name(acc.intent.start_time) in block_days:
        acc.block(rule.rule_text)
        acc.record(rule, "Blocked by availability rule")


def _apply_auto_response(acc: _Accumulator, rule: SchedulingRule) -> None:
    action = rule.actions.get("auto_action")
    if action == "confirm":
        acc.auto_approved = True
        acc.record(rule, "Auto-approved")
    elif action == "decline":
        acc.block(rule.rule_text)
        acc.record(rule, "Auto-declined")
    # suggest_reschedule is informational only


_ACTIONS: dict[str, Callable[[_Accumulator, SchedulingRule], None]] = {
    RuleType.BUFFER.value: _apply_buffer,
    RuleType.ROUTING.value: _apply_routing,
    RuleType.PRIORITY.value: _apply_priority,
    RuleType.AVAILABILITY.value: _apply_availability,
    RuleType.AUTO_RESPONSE.value: _apply_auto_response,
}


def order_rules(rules: Iterable[SchedulingRule]) -> list[SchedulingRule]:
    """Active rules, highest priority first; equal priorities keep input order."""
    return sorted((r for r in rules if r.is_active), key=lambda r: -(r.priority or 0))


def apply_rules(rules: Iterable[SchedulingRule], intent: BookingIntent) -> RuleEvaluation:
    """
    Fold the matching rules over a copy of `intent`.

    A rule that raises while being evaluated is logged and skipped; the
    remaining rules still run. The caller's intent is never mutated.
    """
    acc = _Accumulator(intent=replace(intent))

    for rule in order_rules(rules):
        handler = _ACTIONS.get(getattr(rule.rule_type, "value", rule.rule_type))
        if handler is None:
            continue
        try:
            if conditions_match(rule.conditions or {}, intent):
                handler(acc, rule)
        except Exception as e:
            logger.warning(
                "Skipping scheduling rule that failed to evaluate",
                rule_id=rule.id,
                rule_type=rule.rule_type,
                error=str(e),
            )

    return acc.result()
