"""Base exception shared by every NoteHub error."""


class NoteHubError(Exception):
    """Base class for errors reported to the caller.

    `retryable` tells the caller whether trying again later may succeed
    (transient) or whether something has to be fixed first (permanent).
    """

    retryable: bool = False
