"""Errors reported by the remote issue source."""

from notehub.exceptions import NoteHubError


class RemoteError(NoteHubError):
    """Base class for failures of the remote issue source."""

    pass


class RemoteUnavailable(RemoteError):
    """Raised on network or transport failures, or unexpected server errors."""

    retryable = True


class RateLimited(RemoteError):
    """Raised when GitHub reports that the rate limit was exceeded."""

    retryable = True

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        """Initializes the exception with the suggested wait in seconds, if known."""
        super().__init__(message)
        self.retry_after = retry_after


class RemoteNotFound(RemoteError):
    """Raised when GitHub authoritatively reports that a resource does not exist."""

    pass


class Unauthorized(RemoteError):
    """Raised when GitHub rejects the configured credentials."""

    pass
