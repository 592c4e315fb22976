"""Error taxonomy for the reminder engine."""


class ReminderEngineError(Exception):
    """Base class for reminder engine errors."""


class StoreUnavailable(ReminderEngineError):
    """The store could not be reached; the current cycle is skipped."""


class QueryFailed(ReminderEngineError):
    """A single store operation failed; only the affected reminder or cleanup step is abandoned."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class ChannelSendFailed(ReminderEngineError):
    """A delivery attempt was rejected, errored, or timed out."""

    def __init__(self, channel: str, destination: str, reason: str):
        super().__init__(f"{channel} delivery to {destination} failed: {reason}")
        self.channel = channel
        self.destination = destination
        self.reason = reason


class ConfigurationInvalid(ReminderEngineError):
    """Channel credentials are missing or malformed at startup."""
