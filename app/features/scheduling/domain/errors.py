"""
Scheduling error taxonomy.

Empty availability and missing pattern history are regular results,
not exceptions.
"""


class SchedulingError(Exception):
    """Base class for scheduling core errors."""

    def __init__(self, message: str, user_id: str | None = None, recoverable: bool = False):
        super().__init__(message)
        self.user_id = user_id
        self.recoverable = recoverable


class InvalidConfiguration(SchedulingError):
    """Malformed event type configuration (non-positive duration or interval)."""


class RuleSourceUnavailable(SchedulingError):
    """The scheduling rule store could not be read."""

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(message, user_id=user_id, recoverable=True)


class EventTypeNotFound(SchedulingError):
    """The requested event type does not exist or is inactive."""
