"""
Scheduling routes.

`public_router` serves the booking page (no host session); `router` holds
the host-facing endpoints. Authentication happens upstream, so the host id
arrives in the path.
"""

from datetime import UTC, date

from fastapi import APIRouter, HTTPException, Query, status

from app.features.scheduling.autoconfirm.service import auto_confirm_service
from app.features.scheduling.availability.service import availability_service, resolve_timezone
from app.features.scheduling.decisions.service import booking_decision_service
from app.features.scheduling.domain.errors import EventTypeNotFound, InvalidConfiguration
from app.features.scheduling.domain.models import AutonomousSettings, BookingIntent
from app.features.scheduling.patterns.service import pattern_service
from app.features.scheduling.rules.service import rule_service
from app.features.scheduling.suggestions.service import suggestion_service
from app.infrastructure.observability.logging import get_logger

from .schemas import (
    AppliedRuleResponse,
    AutoConfirmResponse,
    AutoConfirmRules,
    AutonomousSettingsRequest,
    AutonomousSettingsResponse,
    AvailableSlotsResponse,
    BookingDecisionRequest,
    BookingDecisionResponse,
    CreateRuleRequest,
    CreateRuleResponse,
    PatternsResponse,
    RuleResponse,
    RulesListResponse,
    ScoredSlotResponse,
    SlotResponse,
    SmartSuggestionsRequest,
    SmartSuggestionsResponse,
)

logger = get_logger(__name__)

public_router = APIRouter(prefix="/public", tags=["public-booking"])
router = APIRouter(prefix="/scheduling/{user_id}", tags=["scheduling"])


def _settings_response(settings: AutonomousSettings) -> AutonomousSettingsResponse:
    return AutonomousSettingsResponse(
        mode=settings.mode.value, rules=AutoConfirmRules(**settings.rules_dict())
    )


# =================================================================
# PUBLIC AVAILABILITY
# =================================================================


@public_router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    host_id: str = Query(..., description="Host user id"),
    event_type_id: str = Query(..., description="Event type id"),
    day: date = Query(..., alias="date", description="Date to list slots for (YYYY-MM-DD)"),
    timezone: str = Query(default="UTC", description="Timezone for the working-hours grid"),
):
    """Bookable slots for one event type on one day."""
    try:
        result = await availability_service.get_available_slots(
            host_id, event_type_id, day, timezone
        )
    except EventTypeNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvalidConfiguration as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except Exception as e:
        logger.error(
            "Failed to compute available slots",
            host_id=host_id,
            event_type_id=event_type_id,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get available slots",
        ) from e

    return AvailableSlotsResponse(
        date=day.isoformat(),
        timezone=timezone,
        slots=[SlotResponse(start=slot.start, end=slot.end) for slot in result.slots],
        message=result.message,
    )


# =================================================================
# BOOKING DECISIONS
# =================================================================


@router.post("/booking-decisions", response_model=BookingDecisionResponse)
async def decide_booking(user_id: str, request: BookingDecisionRequest):
    """Run a prospective booking through rules and auto-confirm."""
    start_time = request.start_time
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=UTC)

    intent = BookingIntent(
        start_time=start_time,
        duration=request.duration,
        title=request.title,
        event_name=request.event_name,
        attendee_email=request.attendee_email,
        attendee_name=request.attendee_name,
        notes=request.notes,
    )

    try:
        decision = await booking_decision_service.decide_booking(user_id, intent, request.timezone)
    except InvalidConfiguration as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except Exception as e:
        logger.error("Booking decision failed", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to evaluate booking",
        ) from e

    evaluation = decision.rule_evaluation
    auto_confirm = None
    if decision.auto_confirm:
        auto_confirm = AutoConfirmResponse(
            auto_confirm=decision.auto_confirm.auto_confirm,
            reason=decision.auto_confirm.reason,
            mode=decision.auto_confirm.mode.value,
            held=decision.auto_confirm.held,
        )

    return BookingDecisionResponse(
        status=decision.status,
        blocked=decision.blocked,
        block_reason=evaluation.block_reason,
        auto_approved=evaluation.auto_approved,
        applied_rules=[
            AppliedRuleResponse(rule_id=applied.rule_id, rule=applied.rule, action=applied.action)
            for applied in evaluation.applied_rules
        ],
        modified_booking=evaluation.modified_intent.to_dict(),
        auto_confirm=auto_confirm,
        pattern_recorded=decision.pattern_recorded,
    )


# =================================================================
# SMART SUGGESTIONS / PATTERNS
# =================================================================


@router.post("/smart-suggestions", response_model=SmartSuggestionsResponse)
async def get_smart_suggestions(user_id: str, request: SmartSuggestionsRequest):
    try:
        suggestions = await suggestion_service.get_smart_suggestions(
            user_id,
            duration=request.duration,
            attendee_email=request.attendee_email,
            timezone=request.timezone,
            max_slots=request.max_slots,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except InvalidConfiguration as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except Exception as e:
        logger.error("Smart suggestions failed", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get smart suggestions",
        ) from e

    return SmartSuggestionsResponse(
        suggestions=[
            ScoredSlotResponse(start=s.start, end=s.end, score=s.score, reasoning=s.reasoning)
            for s in suggestions
        ]
    )


@router.post("/patterns/analyze", response_model=PatternsResponse)
async def analyze_patterns(
    user_id: str,
    timezone: str | None = Query(
        default=None, description="Zone to read booking hours in (default: stored host zone)"
    ),
):
    """Recompute the booking pattern summaries now."""
    try:
        zone = resolve_timezone(timezone) if timezone else None
        analysis = await pattern_service.refresh_patterns(user_id, zone)
    except InvalidConfiguration as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except Exception as e:
        logger.error("Pattern analysis failed", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze booking patterns",
        ) from e

    if analysis is None:
        return PatternsResponse(patterns={}, analyzed=False)
    return PatternsResponse(patterns=analysis.to_dict())


@router.get("/patterns", response_model=PatternsResponse)
async def get_patterns(user_id: str):
    try:
        patterns = await pattern_service.get_patterns(user_id)
    except Exception as e:
        logger.error("Failed to load patterns", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load patterns"
        ) from e
    return PatternsResponse(patterns=patterns, analyzed=bool(patterns))


# =================================================================
# RULES
# =================================================================


@router.get("/rules", response_model=RulesListResponse)
async def list_rules(user_id: str):
    try:
        rules = await rule_service.list_rules(user_id)
    except Exception as e:
        logger.error("Failed to list rules", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to get rules"
        ) from e
    return RulesListResponse(rules=[RuleResponse(**rule.to_dict()) for rule in rules])


@router.post("/rules", response_model=CreateRuleResponse)
async def create_rule(user_id: str, request: CreateRuleRequest):
    """Create a rule from plain-language text."""
    try:
        rule, parsed = await rule_service.create_rule_from_text(
            user_id, request.rule_text, request.priority
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error("Failed to create rule", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create rule"
        ) from e
    return CreateRuleResponse(rule=RuleResponse(**rule.to_dict()), parsed=parsed.to_dict())


@router.patch("/rules/{rule_id}/toggle", response_model=RuleResponse)
async def toggle_rule(user_id: str, rule_id: str):
    try:
        rule = await rule_service.toggle_rule(user_id, rule_id)
    except Exception as e:
        logger.error("Failed to toggle rule", user_id=user_id, rule_id=rule_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to toggle rule"
        ) from e
    if rule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    return RuleResponse(**rule.to_dict())


@router.delete("/rules/{rule_id}")
async def delete_rule(user_id: str, rule_id: str) -> dict:
    try:
        deleted = await rule_service.delete_rule(user_id, rule_id)
    except Exception as e:
        logger.error("Failed to delete rule", user_id=user_id, rule_id=rule_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete rule"
        ) from e
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    return {"success": True}


# =================================================================
# AUTONOMOUS SETTINGS
# =================================================================


@router.get("/autonomous-settings", response_model=AutonomousSettingsResponse)
async def get_autonomous_settings(user_id: str):
    try:
        settings = await auto_confirm_service.get_settings(user_id)
    except Exception as e:
        logger.error("Failed to load autonomous settings", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get autonomous settings",
        ) from e
    if settings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _settings_response(settings)


@router.put("/autonomous-settings", response_model=AutonomousSettingsResponse)
async def update_autonomous_settings(user_id: str, request: AutonomousSettingsRequest):
    try:
        settings = await auto_confirm_service.update_settings(
            user_id, request.mode, request.rules.model_dump(exclude_none=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error("Failed to update autonomous settings", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update autonomous settings",
        ) from e
    if settings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _settings_response(settings)
