"""
Error taxonomy for the compensation engine.

Malformed entities are rejected by the pydantic models themselves
(``pydantic.ValidationError``); the classes here cover everything that is
detected after construction.
"""


class CompensationError(Exception):
    """Base class for engine errors."""


class InvalidIntervalError(CompensationError, ValueError):
    """An interval with negative duration reached the billing code."""


class EventNotFoundError(CompensationError, LookupError):
    """The store has no event with the requested id."""

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class StorageError(CompensationError):
    """A store could not read or write its data."""


class PartialRegenerationFailure(CompensationError):
    """Regeneration of one event failed during ripple processing."""

    def __init__(self, event_id: str, cause: BaseException):
        super().__init__(f"Failed to regenerate sub-intervals for event {event_id}: {cause}")
        self.event_id = event_id
        self.cause = cause
