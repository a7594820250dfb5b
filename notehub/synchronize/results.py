"""Contains results of sync passes."""

from notehub.github.exceptions import RemoteError
from notehub.schemas.issue import SyncCursor
from notehub.schemas.repository import RepositoryId


class RepositorySyncResult:
    """Outcome of one repository's sync pass."""

    def __init__(
        self,
        repository: RepositoryId,
        issues_synced: int,
        cursor: SyncCursor | None = None,
        error: RemoteError | None = None,
    ) -> None:
        """Initialize the result. `cursor` is set only when the pass completed."""
        self.repository = repository
        self.issues_synced = issues_synced
        self.cursor = cursor
        self.error = error

    @property
    def succeeded(self) -> bool:
        """Whether every page was fetched and the cursor advanced."""
        return self.error is None

    @property
    def retryable(self) -> bool:
        """Whether a failed pass may succeed if retried later."""
        return self.error is not None and self.error.retryable


class SyncReport:
    """Per-repository results of a sync invocation."""

    def __init__(self, results: list[RepositorySyncResult]) -> None:
        """Initialize the report with one result per targeted repository."""
        self.results = results

    @property
    def succeeded(self) -> list[RepositorySyncResult]:
        return [result for result in self.results if result.succeeded]

    @property
    def failed(self) -> list[RepositorySyncResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def ok(self) -> bool:
        return not self.failed

    def for_repository(self, repository: RepositoryId) -> RepositorySyncResult:
        """The result of a given repository. Raises KeyError if it was not synced."""
        for result in self.results:
            if result.repository == repository:
                return result
        raise KeyError(str(repository))
