"""
Tests for the scheduling rule engine.
"""

from datetime import UTC, datetime
from itertools import permutations

from app.features.scheduling.rules.engine import apply_rules, conditions_match, order_rules


def test_no_rules_is_passthrough(make_intent):
    intent = make_intent(title="Intro call")

    result = apply_rules([], intent)

    assert result.blocked is False
    assert result.auto_approved is False
    assert result.applied_rules == []
    assert result.modified_intent == intent


def test_lower_priority_rule_overwrites_shared_field(make_intent, make_rule):
    high = make_rule("buffer", priority=10, actions={"buffer_minutes": 15})
    low = make_rule("buffer", priority=1, actions={"buffer_minutes": 5, "buffer_position": "before"})

    result = apply_rules([low, high], make_intent())

    assert [a.rule_id for a in result.applied_rules] == [high.id, low.id]
    assert result.modified_intent.buffer_minutes == 5
    assert result.modified_intent.buffer_position == "before"
    assert result.applied_rules[0].action == "Added 15min buffer"


def test_equal_priorities_keep_input_order(make_intent, make_rule):
    first = make_rule("routing", priority=3, actions={"assign_to": ["alice"]})
    second = make_rule("routing", priority=3, actions={"assign_to": ["bob", "carol"]})

    result = apply_rules([first, second], make_intent())

    assert result.modified_intent.assigned_to == ["bob", "carol"]
    assert result.applied_rules[-1].action == "Routed to bob, carol"
    assert order_rules([first, second]) == [first, second]


def test_block_flag_survives_later_rules(make_intent, make_rule):
    # 2026-10-23 is a Friday
    friday = datetime(2026, 10, 23, 10, tzinfo=UTC)
    block = make_rule("availability", priority=5, actions={"block_days": ["friday"]})
    approve = make_rule("auto_response", priority=1, actions={"auto_action": "confirm"})

    result = apply_rules([approve, block], make_intent(start_time=friday))

    assert result.blocked is True
    assert result.block_reason == block.rule_text
    assert result.auto_approved is True
    assert [a.action for a in result.applied_rules] == [
        "Blocked by availability rule",
        "Auto-approved",
    ]


def test_availability_rule_ignores_other_days(make_intent, make_rule):
    block = make_rule("availability", actions={"block_days": ["friday"]})

    result = apply_rules([block], make_intent())

    assert result.blocked is False
    assert result.applied_rules == []


def test_auto_decline_blocks(make_intent, make_rule):
    decline = make_rule("auto_response", actions={"auto_action": "decline"})

    result = apply_rules([decline], make_intent())

    assert result.blocked is True
    assert result.block_reason == decline.rule_text
    assert result.applied_rules[0].action == "Auto-declined"


def test_conditions_are_anded(make_intent, make_rule):
    rule = make_rule(
        "priority",
        conditions={"event_type": "demo", "email_domain": "acme.com"},
        actions={"priority_level": "high"},
    )

    matching = make_intent(event_name="Product Demo", attendee_email="Jo@Acme.com")
    wrong_domain = make_intent(event_name="Product Demo", attendee_email="jo@other.com")
    wrong_event = make_intent(event_name="Support", attendee_email="jo@acme.com")

    assert apply_rules([rule], matching).modified_intent.priority == "high"
    assert apply_rules([rule], wrong_domain).modified_intent.priority is None
    assert apply_rules([rule], wrong_event).modified_intent.priority is None


def test_event_type_falls_back_to_title(make_intent):
    assert conditions_match({"event_type": "demo"}, make_intent(title="Quick demo"))


def test_email_domain_requires_exact_domain(make_intent):
    assert not conditions_match(
        {"email_domain": "acme.com"}, make_intent(attendee_email="jo@notacme.com")
    )


def test_day_of_week_uses_sunday_zero(make_intent):
    # 2026-10-25 is a Sunday
    sunday = make_intent(start_time=datetime(2026, 10, 25, 10, tzinfo=UTC))

    assert conditions_match({"day_of_week": 0}, sunday)
    assert not conditions_match({"day_of_week": 0}, make_intent())
    assert conditions_match({"day_of_week": 2}, make_intent())


def test_inactive_and_custom_rules_never_act(make_intent, make_rule):
    inactive = make_rule("auto_response", is_active=False, actions={"auto_action": "decline"})
    custom = make_rule("custom", actions={"auto_action": "decline"})

    result = apply_rules([inactive, custom], make_intent())

    assert result.blocked is False
    assert result.applied_rules == []


def test_malformed_rule_is_skipped(make_intent, make_rule):
    broken = make_rule("buffer", priority=9, actions={"buffer_minutes": "abc"})
    good = make_rule("priority", priority=1, actions={"priority_level": "high"})

    result = apply_rules([broken, good], make_intent())

    assert [a.rule_id for a in result.applied_rules] == [good.id]
    assert result.modified_intent.buffer_minutes is None
    assert result.modified_intent.priority == "high"


def test_input_intent_is_not_mutated(make_intent, make_rule):
    intent = make_intent()
    rules = [
        make_rule("buffer", actions={"buffer_minutes": 10}),
        make_rule("routing", actions={"assign_to": ["alice"]}),
    ]

    apply_rules(rules, intent)

    assert intent.buffer_minutes is None
    assert intent.assigned_to is None


def test_distinct_priorities_make_result_order_independent(make_intent, make_rule):
    rules = [
        make_rule("buffer", priority=3, actions={"buffer_minutes": 20}),
        make_rule("buffer", priority=2, actions={"buffer_minutes": 10}),
        make_rule("routing", priority=1, actions={"assign_to": ["alice"]}),
    ]
    intent = make_intent()

    outcomes = {
        (
            r.modified_intent.buffer_minutes,
            tuple(r.modified_intent.assigned_to or ()),
            tuple(a.rule_id for a in r.applied_rules),
        )
        for r in (apply_rules(list(order), intent) for order in permutations(rules))
    }

    assert len(outcomes) == 1
