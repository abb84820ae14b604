"""
Tests for the smart suggestion scorer.
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from app.features.scheduling.domain.models import AttendeePreferences, CandidateSlot
from app.features.scheduling.suggestions.scorer import score_slot, score_slots

NOW = datetime(2026, 10, 19, 10, tzinfo=UTC)

PATTERNS = {
    "preferred_hours": {"topHours": [{"hour": 10, "count": 6}, {"hour": 14, "count": 3}]},
    "preferred_days": {"topDays": [{"day": 2, "count": 5}, {"day": 4, "count": 2}]},
}


def slot(day: int, hour: int, minute: int = 0) -> CandidateSlot:
    start = datetime(2026, 10, day, hour, minute, tzinfo=UTC)
    return CandidateSlot(start=start, end=start + timedelta(minutes=30))


def test_all_bonuses_stack():
    scored = score_slots([slot(20, 10)], PATTERNS, None, NOW)[0]

    assert scored.score == 180
    assert scored.reasoning == (
        "Your preferred meeting time, Your preferred day, Morning energy boost, "
        "Mid-week focus time, Soon available"
    )


def test_without_patterns_only_general_heuristics_apply():
    assert score_slots([slot(20, 10)], {}, None, NOW)[0].score == 130
    assert score_slots([slot(20, 10)], None, None, NOW)[0].score == 130


def test_attendee_preferences_add_on_top():
    attendee = AttendeePreferences(preferred_hours=[10], preferred_days=[2])

    scored = score_slots([slot(20, 10)], PATTERNS, attendee, NOW)[0]

    assert scored.score == 215
    assert "Attendee's preferred time, Attendee's preferred day" in scored.reasoning


def test_penalties_and_fallback_reason():
    # Monday a week out: no mid-week or soon bonus
    lunch = score_slot(slot(26, 12), NOW)
    late = score_slot(slot(26, 16), NOW)
    plain = score_slot(slot(26, 13), NOW)

    assert (lunch.score, lunch.reasoning) == (85, "Lunch time")
    assert (late.score, late.reasoning) == (90, "Late in the day")
    assert (plain.score, plain.reasoning) == (100, "Available time")


def test_soon_window_is_inclusive():
    on_boundary = CandidateSlot(start=NOW + timedelta(days=2), end=NOW + timedelta(days=2, minutes=30))
    past_boundary = CandidateSlot(
        start=NOW + timedelta(days=2, minutes=30), end=NOW + timedelta(days=2, minutes=60)
    )

    assert "Soon available" in score_slot(on_boundary, NOW).reasoning
    assert "Soon available" not in score_slot(past_boundary, NOW).reasoning


def test_only_top_three_days_count():
    patterns = {
        "preferred_days": {
            "topDays": [
                {"day": 2, "count": 9},
                {"day": 3, "count": 8},
                {"day": 4, "count": 7},
                {"day": 1, "count": 6},
            ]
        }
    }

    monday = score_slots([slot(26, 13)], patterns, None, NOW)[0]

    assert monday.score == 100


def test_ranked_best_first_with_stable_ties():
    slots = [slot(26, 13), slot(26, 9), slot(26, 13, 30), slot(26, 10)]

    ranked = score_slots(slots, {}, None, NOW)

    assert [s.start.strftime("%H:%M") for s in ranked] == ["09:00", "10:00", "13:00", "13:30"]
    assert [s.score for s in ranked] == [115, 115, 100, 100]


def test_results_are_truncated():
    slots = [slot(26, hour) for hour in range(9, 17)]

    assert len(score_slots(slots, {}, None, NOW, max_slots=3)) == 3
    assert len(score_slots(slots, {}, None, NOW)) == 5


def test_hours_are_scored_in_the_requested_zone():
    # 14:00 UTC is 10:00 in New York
    scored = score_slot(slot(26, 14), NOW, tz=ZoneInfo("America/New_York"))

    assert scored.score == 115
    assert scored.reasoning == "Morning energy boost"


def test_preferred_hour_two_days_out():
    # Tuesday 10:00, exactly two days after Sunday 10:00
    sunday = datetime(2026, 10, 18, 10, tzinfo=UTC)
    patterns = {"preferred_hours": {"topHours": [{"hour": 10, "count": 3}]}}

    scored = score_slots([slot(20, 10)], patterns, None, sunday)[0]

    assert scored.score == 160
    for phrase in (
        "Your preferred meeting time",
        "Morning energy boost",
        "Mid-week focus time",
        "Soon available",
    ):
        assert phrase in scored.reasoning
