"""
Booking decision service.

Runs a prospective booking through the host's scheduling rules, then the
auto-confirm policy, and settles on a status. Confirmed bookings feed the
pattern counters.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from app.features.scheduling.autoconfirm.policy import (
    STATUS_CONFIRMED,
    resolve_booking_status,
)
from app.features.scheduling.autoconfirm.service import auto_confirm_service
from app.features.scheduling.availability.service import resolve_host_timezone
from app.features.scheduling.domain.models import (
    AutoConfirmDecision,
    BookingIntent,
    RuleEvaluation,
)
from app.features.scheduling.patterns.recorder import record_booking_pattern
from app.features.scheduling.rules.service import rule_service
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

STATUS_BLOCKED = "blocked"


@dataclass(slots=True)
class BookingDecision:
    status: str
    rule_evaluation: RuleEvaluation
    auto_confirm: AutoConfirmDecision | None = None
    pattern_recorded: bool = False

    @property
    def blocked(self) -> bool:
        return self.status == STATUS_BLOCKED


class BookingDecisionService:
    async def decide_booking(
        self, user_id: str, intent: BookingIntent, timezone: str | None = None
    ) -> BookingDecision:
        zone = await resolve_host_timezone(user_id, timezone)
        intent = replace(intent, start_time=intent.start_time.astimezone(zone))

        evaluation = await rule_service.evaluate_booking(user_id, intent)
        if evaluation.blocked:
            logger.info(
                "Booking blocked by scheduling rules",
                user_id=user_id,
                block_reason=evaluation.block_reason,
            )
            return BookingDecision(status=STATUS_BLOCKED, rule_evaluation=evaluation)

        modified = evaluation.modified_intent
        decision = await auto_confirm_service.should_auto_confirm(user_id, modified)
        status = resolve_booking_status(evaluation, decision)

        recorded = False
        if status == STATUS_CONFIRMED:
            recorded = await record_booking_pattern(
                user_id, modified.start_time, modified.duration, zone
            )

        logger.info(
            "Booking decision made",
            user_id=user_id,
            status=status,
            applied_rule_count=len(evaluation.applied_rules),
            auto_approved=evaluation.auto_approved,
            mode=decision.mode.value,
        )
        return BookingDecision(
            status=status,
            rule_evaluation=evaluation,
            auto_confirm=decision,
            pattern_recorded=recorded,
        )


booking_decision_service = BookingDecisionService()
