"""
Persistence for user-authored scheduling rules.
"""

import json

from app.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, with_db_retry
from app.features.scheduling.domain.errors import RuleSourceUnavailable
from app.features.scheduling.domain.models import SchedulingRule
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RULE_COLUMNS = "id, rule_type, rule_text, priority, is_active, conditions, actions, created_at"


class RuleRepository:
    @staticmethod
    @with_db_retry(max_retries=2)
    async def _fetch_active_rows(user_id: str) -> list[dict]:
        return await fetch_all(
            f"""
            SELECT {RULE_COLUMNS}
            FROM scheduling_rules
            WHERE user_id = %s
              AND is_active = true
            ORDER BY priority DESC, created_at ASC
            """,
            (user_id,),
        )

    @classmethod
    async def load_scheduling_rules(cls, user_id: str) -> list[SchedulingRule]:
        """
        Active rules in evaluation order (priority desc, oldest first).

        Raises:
            RuleSourceUnavailable: the rule store could not be read
        """
        try:
            rows = await cls._fetch_active_rows(user_id)
        except DatabaseError as e:
            raise RuleSourceUnavailable(
                f"Scheduling rules unavailable: {e}", user_id=user_id
            ) from e
        return [SchedulingRule.from_row(row) for row in rows]

    @staticmethod
    async def list_rules(user_id: str) -> list[SchedulingRule]:
        rows = await fetch_all(
            f"""
            SELECT {RULE_COLUMNS}
            FROM scheduling_rules
            WHERE user_id = %s
            ORDER BY priority DESC, created_at DESC
            """,
            (user_id,),
        )
        return [SchedulingRule.from_row(row) for row in rows]

    @staticmethod
    async def create_rule(
        user_id: str,
        rule_text: str,
        rule_type: str,
        conditions: dict,
        actions: dict,
        priority: int = 0,
    ) -> SchedulingRule:
        row = await fetch_one(
            f"""
            INSERT INTO scheduling_rules
                (user_id, rule_text, rule_type, conditions, actions, priority)
            VALUES (%s, %s, %s, %s::jsonb, %s::jsonb, %s)
            RETURNING {RULE_COLUMNS}
            """,
            (user_id, rule_text, rule_type, json.dumps(conditions), json.dumps(actions), priority),
        )
        logger.info("Scheduling rule created", user_id=user_id, rule_type=rule_type)
        return SchedulingRule.from_row(row)

    @staticmethod
    async def toggle_rule(user_id: str, rule_id: str) -> SchedulingRule | None:
        row = await fetch_one(
            f"""
            UPDATE scheduling_rules
            SET is_active = NOT is_active,
                updated_at = NOW()
            WHERE id = %s
              AND user_id = %s
            RETURNING {RULE_COLUMNS}
            """,
            (rule_id, user_id),
        )
        return SchedulingRule.from_row(row) if row else None

    @staticmethod
    async def delete_rule(user_id: str, rule_id: str) -> bool:
        deleted = await execute_query(
            "DELETE FROM scheduling_rules WHERE id = %s AND user_id = %s",
            (rule_id, user_id),
        )
        return deleted > 0
