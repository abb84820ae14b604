"""
Booking pattern recording and analysis.
"""

from .analyzer import PatternAnalysis, analyze_booking_patterns, compute_acceptance_rate
from .recorder import pattern_key, record_booking_pattern
from .service import PatternService, pattern_service

__all__ = [
    "PatternAnalysis",
    "PatternService",
    "analyze_booking_patterns",
    "compute_acceptance_rate",
    "pattern_key",
    "pattern_service",
    "record_booking_pattern",
]
