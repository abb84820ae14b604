"""
External calendar access, reduced to busy intervals.
"""

from .busy_client import CalendarBusyClient, CalendarBusyError

__all__ = ["CalendarBusyClient", "CalendarBusyError"]
