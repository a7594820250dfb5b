"""Base ABC for remote issue sources."""

from abc import ABC, abstractmethod
from typing import Literal

from notehub.schemas.issue import IssuePage, IssueRecord
from notehub.schemas.repository import RepositoryId

DEFAULT_PAGE_SIZE = 50


class RemoteIssueSource(ABC):
    """Read-only access to the issues of remote repositories.

    Implementations raise the errors in `notehub.github.exceptions`
    (Unauthorized, RateLimited, RemoteNotFound, RemoteUnavailable) and nothing
    else for remote failures.
    """

    @abstractmethod
    async def list_issues(
        self,
        repository: RepositoryId,
        state: Literal["open", "closed", "all"] = "all",
        page_cursor: str | None = None,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> IssuePage:
        """Fetch one page of issues.

        `page_cursor` is None for the first page and otherwise the
        `next_cursor` of the previous page, passed back unchanged.
        """
        pass

    @abstractmethod
    async def get_issue(self, repository: RepositoryId, number: int) -> IssueRecord:
        """Fetch a single issue by number."""
        pass
