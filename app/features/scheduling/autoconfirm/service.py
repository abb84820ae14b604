"""
Auto-confirm service - loads a host's autonomous settings and runs the policy.
"""

from __future__ import annotations

from datetime import timedelta

from app.features.scheduling.domain.models import (
    AutoConfirmDecision,
    AutonomousMode,
    AutonomousSettings,
    BookingIntent,
)
from app.infrastructure.observability.logging import get_logger

from .policy import decide
from .repository import AutoConfirmRepository

logger = get_logger(__name__)


class AutoConfirmService:
    async def should_auto_confirm(self, user_id: str, intent: BookingIntent) -> AutoConfirmDecision:
        settings = await AutoConfirmRepository.load_autonomous_settings(user_id)
        if settings is None:
            logger.warning("No autonomous settings found, treating as manual", user_id=user_id)
            settings = AutonomousSettings()

        daily_count = None
        if settings.mode != AutonomousMode.MANUAL and settings.max_daily_bookings:
            day_start = intent.start_time.replace(hour=0, minute=0, second=0, microsecond=0)
            daily_count = await AutoConfirmRepository.count_confirmed_bookings(
                user_id, day_start, day_start + timedelta(days=1)
            )

        decision = decide(settings, intent, daily_count)
        logger.info(
            "Auto-confirm evaluated",
            user_id=user_id,
            mode=decision.mode.value,
            auto_confirm=decision.auto_confirm,
            held=decision.held,
            reason=decision.reason,
        )
        return decision

    async def get_settings(self, user_id: str) -> AutonomousSettings | None:
        return await AutoConfirmRepository.load_autonomous_settings(user_id)

    async def update_settings(
        self, user_id: str, mode: str, rules: dict | None = None
    ) -> AutonomousSettings | None:
        """
        Raises:
            ValueError: `mode` is not manual, suggest or auto
        """
        try:
            parsed_mode = AutonomousMode(mode)
        except ValueError:
            raise ValueError(f"Invalid mode: {mode}") from None

        settings = AutonomousSettings.from_row(parsed_mode.value, rules)
        return await AutoConfirmRepository.update_autonomous_settings(user_id, settings)


auto_confirm_service = AutoConfirmService()
