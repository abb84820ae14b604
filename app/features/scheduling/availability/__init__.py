"""
Slot generation, conflict resolution and the availability service.
"""

from .conflicts import check_booking_window, compute_available_slots, resolve_conflicts
from .service import AvailabilityService, availability_service
from .slots import generate_candidate_slots

__all__ = [
    "AvailabilityService",
    "availability_service",
    "check_booking_window",
    "compute_available_slots",
    "generate_candidate_slots",
    "resolve_conflicts",
]
