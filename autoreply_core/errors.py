class AutoReplyError(Exception):
    """Base class for failures raised inside the engagement pipeline."""


class StorageError(AutoReplyError):
    """A read or write against persisted state failed."""


class TransportError(AutoReplyError):
    """Fetching content from, or acting through, the chat transport failed."""


class DispatchError(AutoReplyError):
    """An owner command handler raised."""

    def __init__(self, command: str, cause: BaseException):
        super().__init__(f"owner command {command!r} failed: {cause}")
        self.command = command
        self.cause = cause


class PipelineError(AutoReplyError):
    """Uncaught failure while handling a single message event."""

    def __init__(self, message_id: int | str | None, cause: BaseException):
        super().__init__(f"pipeline failed for message {message_id}: {cause}")
        self.message_id = message_id
        self.cause = cause
