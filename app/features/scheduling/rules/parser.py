"""
Keyword parser turning a free-text rule ("Add 15 min buffer after demos")
into a structured SchedulingRule. Detection runs in a fixed order and the
first family whose keywords appear wins; unrecognised text becomes a
`custom` rule that is stored but never acts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from app.features.scheduling.domain.models import RuleType

ASSIGNEE_PATTERN = re.compile(r"\bto\s+(\w+(?:\s+(?:and|&)\s+\w+)*)")
ASSIGNEE_SPLIT = re.compile(r"\s+(?:and|&)\s+")
MINUTES_PATTERN = re.compile(r"(\d+)\s*(?:min|minute)")
TIME_PATTERN = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?")
DOMAIN_PATTERN = re.compile(r"@([\w.-]+)")

ROUTABLE_EVENT_TYPES = ("demo", "sales", "support")
PARSER_DAY_ORDER = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(slots=True)
class ParsedRule:
    rule_type: str = RuleType.CUSTOM.value
    conditions: dict[str, Any] = field(default_factory=dict)
    actions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.rule_type, "conditions": self.conditions, "actions": self.actions}


def _has_any(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def _parse_routing(text: str, parsed: ParsedRule) -> None:
    parsed.rule_type = RuleType.ROUTING.value
    match = ASSIGNEE_PATTERN.search(text)
    if match:
        parsed.actions["assign_to"] = ASSIGNEE_SPLIT.split(match.group(1))
    for event_type in ROUTABLE_EVENT_TYPES:
        if event_type in text:
            parsed.conditions["event_type"] = event_type


def _parse_buffer(text: str, parsed: ParsedRule) -> None:
    parsed.rule_type = RuleType.BUFFER.value
    match = MINUTES_PATTERN.search(text)
    if match:
        parsed.actions["buffer_minutes"] = int(match.group(1))
    parsed.actions["buffer_position"] = "before" if "before" in text else "after"


def _parse_availability(text: str, parsed: ParsedRule) -> None:
    parsed.rule_type = RuleType.AVAILABILITY.value
    days = [day for day in PARSER_DAY_ORDER if day in text]
    if days:
        key = "block_days" if _has_any(text, "no meeting", "block") else "allow_days"
        parsed.actions[key] = days
    times = [m.group(0).strip() for m in TIME_PATTERN.finditer(text)]
    if times:
        parsed.conditions["time_range"] = times


def _parse_priority(text: str, parsed: ParsedRule) -> None:
    parsed.rule_type = RuleType.PRIORITY.value
    parsed.actions["priority_level"] = "high"
    match = DOMAIN_PATTERN.search(text)
    if match:
        parsed.conditions["email_domain"] = match.group(1).rstrip(".")


def _parse_auto_response(text: str, parsed: ParsedRule) -> None:
    parsed.rule_type = RuleType.AUTO_RESPONSE.value
    if "confirm" in text:
        parsed.actions["auto_action"] = "confirm"
    if _has_any(text, "decline", "reject"):
        parsed.actions["auto_action"] = "decline"
    if "reschedule" in text:
        parsed.actions["auto_action"] = "suggest_reschedule"


def parse_scheduling_rule(rule_text: str) -> ParsedRule:
    text = rule_text.lower()
    parsed = ParsedRule()

    if _has_any(text, "route", "assign"):
        _parse_routing(text, parsed)
    elif _has_any(text, "buffer", "gap", "break"):
        _parse_buffer(text, parsed)
    elif _has_any(text, "no meeting", "block", "only available"):
        _parse_availability(text, parsed)
    elif _has_any(text, "vip", "priority", "important"):
        _parse_priority(text, parsed)
    elif "auto" in text:
        _parse_auto_response(text, parsed)

    return parsed
