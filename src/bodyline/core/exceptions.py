"""
Bodyline exception hierarchy.

All bodyline exceptions inherit from BodylineError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
Absence of data is never an error: it is modelled as ``MetricPresence.MISSING``.
"""


class BodylineError(Exception):
    """Base exception class for all bodyline errors."""


class ConfigurationError(BodylineError):
    """Raised for configuration errors (missing keys, invalid values)."""


class EventSourceError(BodylineError):
    """Raised by event sources that cannot produce an event set."""


class InvalidEventError(BodylineError):
    """Raised when a single health event is malformed or out of range."""

    def __init__(self, message: str, event_id: str = ""):
        super().__init__(message)
        self.event_id = event_id


class ScoreFunctionError(BodylineError):
    """Raised when the external body-score function fails."""


class UnknownBucketError(BodylineError, KeyError):
    """Raised when a cursor operation names a bucket that does not exist."""

    def __str__(self) -> str:
        return Exception.__str__(self)
