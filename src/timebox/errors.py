"""Error taxonomy shared by the core, the adapters and the scheduler."""


class TimeboxError(Exception):
    """Base class for all timebox errors. The message is user-facing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(TimeboxError):
    """A task or session does not exist."""


class EventNotFound(NotFound):
    """The external calendar has no event with the given id."""


class InvalidInput(TimeboxError):
    """Rejected before any side effect happened."""


class Unauthenticated(TimeboxError):
    """No valid external-calendar credential."""


class ExternalServiceError(TimeboxError):
    """Transient failure talking to the calendar provider (network, rate limit, timeout)."""


class PartialFailure(TimeboxError):
    """
    Some, but not all, sessions of a scheduling request were booked.

    The sessions that were booked stay committed; `result` describes the task
    as saved after the last success.
    """

    def __init__(self, message: str, sessions_created: int, result=None):
        super().__init__(message)
        self.sessions_created = sessions_created
        self.result = result
