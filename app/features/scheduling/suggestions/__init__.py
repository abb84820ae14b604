"""
Smart suggestion scoring.
"""

from .scorer import score_slots
from .service import SuggestionService, suggestion_service

__all__ = ["SuggestionService", "score_slots", "suggestion_service"]
