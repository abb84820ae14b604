"""
Scheduling rules: text parser, evaluation engine, persistence.
"""

from .engine import apply_rules
from .parser import parse_scheduling_rule
from .service import RuleService, rule_service

__all__ = ["RuleService", "apply_rules", "parse_scheduling_rule", "rule_service"]
