"""
Autonomous-mode auto-confirm policy.
"""

from .policy import decide, resolve_booking_status
from .service import AutoConfirmService, auto_confirm_service

__all__ = ["AutoConfirmService", "auto_confirm_service", "decide", "resolve_booking_status"]
