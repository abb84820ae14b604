"""
Tests for the scheduling repositories with the db helpers mocked.
"""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import psycopg
import pytest

from app.db.helpers import DatabaseError
from app.features.scheduling.autoconfirm.repository import AutoConfirmRepository
from app.features.scheduling.availability.repository import AvailabilityRepository
from app.features.scheduling.domain.errors import RuleSourceUnavailable
from app.features.scheduling.domain.models import AutonomousMode, PatternType
from app.features.scheduling.patterns.repository import (
    UPSERT_PATTERN_COUNT,
    UPSERT_PATTERN_SUMMARY,
    PatternRepository,
)
from app.features.scheduling.rules.repository import RuleRepository


def transient_error() -> DatabaseError:
    error = DatabaseError("connection reset", operation="fetch_all")
    error.__cause__ = psycopg.OperationalError("connection reset")
    return error


@pytest.mark.asyncio
async def test_pattern_counter_is_a_single_upsert(monkeypatch):
    execute = AsyncMock(return_value=1)
    monkeypatch.setattr("app.features.scheduling.patterns.repository.execute_query", execute)

    await PatternRepository.persist_booking_pattern("user-1", 2, 10, 30)

    execute.assert_awaited_once_with(UPSERT_PATTERN_COUNT, ("user-1", 2, 10, 30))
    assert "booking_count = booking_pattern_counts.booking_count + 1" in UPSERT_PATTERN_COUNT


@pytest.mark.asyncio
async def test_pattern_summary_overwrites(monkeypatch):
    execute = AsyncMock(return_value=1)
    monkeypatch.setattr("app.features.scheduling.patterns.repository.execute_query", execute)

    await PatternRepository.persist_pattern_summary(
        "user-1", PatternType.ACCEPTANCE_RATE, {"rate": 50.0}
    )

    execute.assert_awaited_once_with(
        UPSERT_PATTERN_SUMMARY, ("user-1", "acceptance_rate", json.dumps({"rate": 50.0}))
    )
    assert "pattern_data = EXCLUDED.pattern_data" in UPSERT_PATTERN_SUMMARY


@pytest.mark.asyncio
async def test_pattern_summaries_share_one_transaction(monkeypatch):
    transaction = AsyncMock(return_value=True)
    monkeypatch.setattr(
        "app.features.scheduling.patterns.repository.execute_transaction", transaction
    )

    await PatternRepository.persist_pattern_summaries(
        "user-1",
        {PatternType.PREFERRED_HOURS: {"peakHour": 10}, PatternType.AVG_DURATION: {"average": 30}},
    )

    statements = transaction.await_args.args[0]
    assert [params[1] for _, params in statements] == ["preferred_hours", "avg_duration"]


@pytest.mark.asyncio
async def test_load_pattern_summaries_keys_by_type(monkeypatch):
    monkeypatch.setattr(
        "app.features.scheduling.patterns.repository.fetch_all",
        AsyncMock(return_value=[{"pattern_type": "preferred_days", "pattern_data": {"topDays": []}}]),
    )

    assert await PatternRepository.load_pattern_summaries("user-1") == {
        "preferred_days": {"topDays": []}
    }


@pytest.mark.asyncio
async def test_rule_source_failure_is_translated(monkeypatch):
    fetch = AsyncMock(side_effect=DatabaseError("relation does not exist"))
    monkeypatch.setattr("app.features.scheduling.rules.repository.fetch_all", fetch)

    with pytest.raises(RuleSourceUnavailable) as exc_info:
        await RuleRepository.load_scheduling_rules("user-1")

    assert exc_info.value.recoverable is True
    fetch.assert_awaited_once()


@pytest.mark.asyncio
async def test_transient_rule_source_failure_is_retried(monkeypatch):
    row = {
        "id": 7,
        "rule_type": "buffer",
        "rule_text": "Add 10 min buffer",
        "priority": 2,
        "is_active": True,
        "conditions": None,
        "actions": {"buffer_minutes": 10},
        "created_at": None,
    }
    fetch = AsyncMock(side_effect=[transient_error(), [row]])
    monkeypatch.setattr("app.features.scheduling.rules.repository.fetch_all", fetch)
    monkeypatch.setattr("app.db.helpers.asyncio.sleep", AsyncMock())

    rules = await RuleRepository.load_scheduling_rules("user-1")

    assert fetch.await_count == 2
    assert rules[0].id == "7"
    assert rules[0].conditions == {}


@pytest.mark.asyncio
async def test_delete_rule_reports_missing_rule(monkeypatch):
    monkeypatch.setattr(
        "app.features.scheduling.rules.repository.execute_query", AsyncMock(return_value=0)
    )

    assert await RuleRepository.delete_rule("user-1", "r-404") is False


@pytest.mark.asyncio
async def test_event_type_defaults(monkeypatch):
    monkeypatch.setattr(
        "app.features.scheduling.availability.repository.fetch_one",
        AsyncMock(return_value={"id": "evt-1", "duration": 45, "slot_interval": None}),
    )

    config = await AvailabilityRepository.fetch_event_type_config("host-1", "evt-1")

    assert config.duration == 45
    assert config.slot_interval == 45


@pytest.mark.asyncio
async def test_autonomous_settings_from_user_row(monkeypatch):
    monkeypatch.setattr(
        "app.features.scheduling.autoconfirm.repository.fetch_one",
        AsyncMock(
            return_value={
                "autonomous_mode": "suggest",
                "auto_confirm_rules": {"max_duration": 60},
            }
        ),
    )

    settings = await AutoConfirmRepository.load_autonomous_settings("user-1")

    assert settings.mode == AutonomousMode.SUGGEST
    assert settings.max_duration == 60


@pytest.mark.asyncio
async def test_confirmed_booking_count(monkeypatch):
    fetch_val = AsyncMock(return_value=None)
    monkeypatch.setattr("app.features.scheduling.autoconfirm.repository.fetch_val", fetch_val)
    start = datetime(2026, 10, 20, tzinfo=UTC)
    end = datetime(2026, 10, 21, tzinfo=UTC)

    assert await AutoConfirmRepository.count_confirmed_bookings("user-1", start, end) == 0
    fetch_val.assert_awaited_once()
