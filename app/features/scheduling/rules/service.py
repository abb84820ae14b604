"""
Rule service - loads a host's rules and evaluates bookings against them.
"""

from __future__ import annotations

from app.config import settings
from app.features.scheduling.domain.errors import RuleSourceUnavailable
from app.features.scheduling.domain.models import BookingIntent, RuleEvaluation, SchedulingRule
from app.infrastructure.observability.logging import get_logger

from .engine import apply_rules
from .parser import ParsedRule, parse_scheduling_rule
from .repository import RuleRepository

logger = get_logger(__name__)

RULES_UNAVAILABLE_REASON = "Scheduling rules are temporarily unavailable"
MIN_RULE_TEXT_LENGTH = 5


class RuleService:
    async def evaluate_booking(self, user_id: str, intent: BookingIntent) -> RuleEvaluation:
        """
        Apply the host's active rules to `intent`.

        When the rule store is unreachable the booking proceeds as if no
        rules existed, unless RULES_FAIL_CLOSED is set, in which case it is
        blocked instead.
        """
        try:
            rules = await RuleRepository.load_scheduling_rules(user_id)
        except RuleSourceUnavailable as e:
            if settings.RULES_FAIL_CLOSED:
                logger.error(
                    "Rule source unavailable, blocking booking", user_id=user_id, error=str(e)
                )
                return RuleEvaluation(
                    modified_intent=intent, blocked=True, block_reason=RULES_UNAVAILABLE_REASON
                )
            logger.warning(
                "Rule source unavailable, proceeding without rules",
                user_id=user_id,
                error=str(e),
            )
            return RuleEvaluation.passthrough(intent)

        evaluation = apply_rules(rules, intent)

        if evaluation.applied_rules:
            logger.info(
                "Scheduling rules applied",
                user_id=user_id,
                applied_count=len(evaluation.applied_rules),
                blocked=evaluation.blocked,
                auto_approved=evaluation.auto_approved,
            )
        return evaluation

    async def create_rule_from_text(
        self, user_id: str, rule_text: str, priority: int = 0
    ) -> tuple[SchedulingRule, ParsedRule]:
        text = (rule_text or "").strip()
        if len(text) < MIN_RULE_TEXT_LENGTH:
            raise ValueError("Please provide a rule description")

        parsed = parse_scheduling_rule(text)
        rule = await RuleRepository.create_rule(
            user_id,
            text,
            parsed.rule_type,
            parsed.conditions,
            parsed.actions,
            priority=priority,
        )
        return rule, parsed

    async def list_rules(self, user_id: str) -> list[SchedulingRule]:
        return await RuleRepository.list_rules(user_id)

    async def toggle_rule(self, user_id: str, rule_id: str) -> SchedulingRule | None:
        rule = await RuleRepository.toggle_rule(user_id, rule_id)
        if rule:
            logger.info(
                "Scheduling rule toggled", user_id=user_id, rule_id=rule_id, is_active=rule.is_active
            )
        return rule

    async def delete_rule(self, user_id: str, rule_id: str) -> bool:
        return await RuleRepository.delete_rule(user_id, rule_id)


rule_service = RuleService()
