"""Contains exceptions raised by the local cache and repository registry."""

from notehub.exceptions import NoteHubError


class CacheCorruption(NoteHubError):
    """Raised when the local database fails unexpectedly. Not recoverable."""

    pass


class IssueNotCached(NoteHubError):
    """Raised when an issue is not present in the local cache."""

    def __init__(self, repository: str, number: int) -> None:
        """Initializes the exception with the missing key."""
        super().__init__(f"Issue #{number} of {repository} is not in the local cache")
        self.repository = repository
        self.number = number


class NotTracked(NoteHubError):
    """Raised when operating on a repository that was never added."""

    def __init__(self, repository: str) -> None:
        """Initializes the exception with the untracked repository."""
        super().__init__(f"Repository {repository} is not tracked. Run 'notehub repo add {repository}' first.")
        self.repository = repository


class AlreadyTracked(NoteHubError):
    """Raised when adding a repository that is already tracked."""

    def __init__(self, repository: str) -> None:
        """Initializes the exception with the duplicate repository."""
        super().__init__(f"Repository {repository} is already tracked")
        self.repository = repository
