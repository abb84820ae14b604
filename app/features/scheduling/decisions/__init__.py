from .service import BookingDecision, BookingDecisionService, booking_decision_service

__all__ = ["BookingDecision", "BookingDecisionService", "booking_decision_service"]
