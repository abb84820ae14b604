"""
Persistence for autonomous-mode settings and the daily booking cap.
"""

import json
from datetime import datetime

from app.db.helpers import fetch_one, fetch_val
from app.features.scheduling.domain.models import AutonomousSettings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class AutoConfirmRepository:
    @staticmethod
    async def load_autonomous_settings(user_id: str) -> AutonomousSettings | None:
        row = await fetch_one(
            "SELECT autonomous_mode, auto_confirm_rules FROM users WHERE id = %s",
            (user_id,),
        )
        if row is None:
            return None
        return AutonomousSettings.from_row(row.get("autonomous_mode"), row.get("auto_confirm_rules"))

    @staticmethod
    async def update_autonomous_settings(
        user_id: str, settings: AutonomousSettings
    ) -> AutonomousSettings | None:
        row = await fetch_one(
            """
            UPDATE users
            SET autonomous_mode = %s,
                auto_confirm_rules = %s::jsonb,
                updated_at = NOW()
            WHERE id = %s
            RETURNING autonomous_mode, auto_confirm_rules
            """,
            (settings.mode.value, json.dumps(settings.rules_dict()), user_id),
        )
        if row is None:
            return None
        logger.info("Autonomous settings updated", user_id=user_id, mode=settings.mode.value)
        return AutonomousSettings.from_row(row.get("autonomous_mode"), row.get("auto_confirm_rules"))

    @staticmethod
    async def count_confirmed_bookings(user_id: str, start: datetime, end: datetime) -> int:
        count = await fetch_val(
            """
            SELECT COUNT(*) AS count
            FROM bookings
            WHERE host_user_id = %s
              AND status = 'confirmed'
              AND start_time >= %s
              AND start_time < %s
            """,
            (user_id, start, end),
        )
        return int(count or 0)
