from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from app.features.scheduling.domain.models import BookingIntent, SchedulingRule

# 2026-10-20 is a Tuesday.
TUESDAY = datetime(2026, 10, 20, tzinfo=UTC)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """UTC datetime in October 2026."""
    return datetime(2026, 10, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def make_intent():
    def _make(start_time: datetime | None = None, **overrides) -> BookingIntent:
        return BookingIntent(start_time=start_time or at(20, 10), **overrides)

    return _make


@pytest.fixture
def make_rule():
    counter = {"n": 0}

    def _make(rule_type: str, priority: int = 0, **fields) -> SchedulingRule:
        counter["n"] += 1
        fields.setdefault("id", f"rule-{counter['n']}")
        fields.setdefault("rule_text", f"{rule_type} rule {counter['n']}")
        return SchedulingRule(rule_type=rule_type, priority=priority, **fields)

    return _make


@pytest.fixture(autouse=True)
def stored_host_timezone(monkeypatch):
    """Hosts have no stored timezone unless a test sets `return_value`."""
    lookup = AsyncMock(return_value=None)
    monkeypatch.setattr(
        "app.features.scheduling.availability.service.AvailabilityRepository.fetch_host_timezone",
        lookup,
    )
    return lookup
