"""Serves list and view requests from the local cache."""

from enum import Enum

import structlog

from notehub.github.abc import RemoteIssueSource
from notehub.github.exceptions import RemoteError
from notehub.schemas.issue import IssueRecord, StateFilter
from notehub.schemas.repository import RepositoryId, RepositoryScope
from notehub.storage.cache import CacheStore
from notehub.storage.exceptions import IssueNotCached
from notehub.storage.registry import RepositoryRegistry

logger = structlog.get_logger(__name__)


class ViewSource(str, Enum):
    """Where the issue returned by `view` came from."""

    CACHE = "cache"
    REMOTE = "remote"


class ViewState(str, Enum):
    """States of the `view` state machine."""

    CACHE_LOOKUP = "cache_lookup"
    REMOTE_FETCH = "remote_fetch"
    STORE_AND_RETURN = "store_and_return"
    RETURN = "return"
    REPORT_ERROR = "report_error"


class IssueView:
    """An issue returned by `view`, with where it came from."""

    def __init__(self, repository: RepositoryId, issue: IssueRecord, source: ViewSource) -> None:
        """Initialize the view result."""
        self.repository = repository
        self.issue = issue
        self.source = source


class ListedIssue:
    """An issue returned by `list`, with the repository it belongs to."""

    def __init__(self, repository: RepositoryId, issue: IssueRecord) -> None:
        """Initialize the listing entry."""
        self.repository = repository
        self.issue = issue


class ReadResolver:
    """Answers reads from the cache, backfilling single issues on a `view` miss."""

    def __init__(self, store: CacheStore, registry: RepositoryRegistry, source: RemoteIssueSource) -> None:
        """Initialize the resolver with its collaborators."""
        self.store = store
        self.registry = registry
        self.source = source

    def list(self, target: RepositoryId | RepositoryScope = RepositoryScope.DEFAULT, state_filter: StateFilter = StateFilter.ALL) -> list[ListedIssue]:
        """List cached issues of one repository, the default one, or all tracked ones.

        Never touches the network. An empty result does not tell "synced, no
        issues" apart from "never synced"; the sync cursor does.
        """
        if target == RepositoryScope.ALL:
            tracked = {repository.key: repository for repository in self.registry.list()}
            return [
                ListedIssue(tracked[key], issue)
                for key, issue in self.store.list_issues_with_repository(None, state_filter)
                if key in tracked
            ]
        repository = self.registry.default() if target == RepositoryScope.DEFAULT else self.registry.require(target)
        return [ListedIssue(repository, issue) for issue in self.store.list_issues(repository, state_filter)]

    async def view(self, repository: RepositoryId | None, number: int) -> IssueView:
        """Return an issue from the cache, fetching and caching it on a miss.

        Makes at most one remote call. Remote failures propagate as
        RemoteNotFound, RemoteUnavailable, RateLimited or Unauthorized.
        """
        target = self.registry.resolve(repository)
        state = ViewState.CACHE_LOOKUP
        # Set by the transition into RETURN/STORE_AND_RETURN or REPORT_ERROR respectively.
        view: IssueView
        error: RemoteError
        while True:
            logger.debug("View state", repository=str(target), issue_number=number, state=state.value)
            if state == ViewState.CACHE_LOOKUP:
                try:
                    view = IssueView(target, self.store.get_issue(target, number), ViewSource.CACHE)
                    state = ViewState.RETURN
                except IssueNotCached:
                    state = ViewState.REMOTE_FETCH
            elif state == ViewState.REMOTE_FETCH:
                logger.info("Issue not cached, fetching from GitHub", repository=str(target), issue_number=number)
                try:
                    view = IssueView(target, await self.source.get_issue(target, number), ViewSource.REMOTE)
                    state = ViewState.STORE_AND_RETURN
                except RemoteError as exc:
                    error = exc
                    state = ViewState.REPORT_ERROR
            elif state == ViewState.STORE_AND_RETURN:
                self.store.upsert_issue(target, view.issue)
                return view
            elif state == ViewState.RETURN:
                return view
            else:
                logger.warning(
                    "Could not fetch issue",
                    repository=str(target),
                    issue_number=number,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                raise error
