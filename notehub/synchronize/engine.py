"""Reconciles remote issue state into the local cache."""

import time
from datetime import datetime

import structlog

from notehub.github.abc import DEFAULT_PAGE_SIZE, RemoteIssueSource
from notehub.github.exceptions import RemoteError
from notehub.schemas.issue import SyncCursor
from notehub.schemas.repository import RepositoryId, RepositoryScope
from notehub.storage.cache import CacheStore, Clock, utc_now
from notehub.storage.registry import RepositoryRegistry
from notehub.synchronize.results import RepositorySyncResult, SyncReport

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SyncEngine:
    """Runs full sync passes for tracked repositories.

    A pass fetches open and closed issues in one paginated query and upserts
    each page as soon as it arrives. The repository's cursor only moves once
    the last page has been stored; a failed pass keeps the issues it already
    wrote but leaves the cursor as it was, so the next pass starts over.
    Failures are never retried here.
    """

    def __init__(
        self,
        store: CacheStore,
        registry: RepositoryRegistry,
        source: RemoteIssueSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the engine with its collaborators."""
        self.store = store
        self.registry = registry
        self.source = source
        self.page_size = page_size
        self.clock = clock

    def targets(self, target: RepositoryId | RepositoryScope) -> list[RepositoryId]:
        """Repositories a sync of `target` covers. Raises NotTracked or NoDefaultSet."""
        if target == RepositoryScope.ALL:
            return self.registry.list()
        if target == RepositoryScope.DEFAULT:
            return [self.registry.default()]
        return [self.registry.require(target)]

    async def sync(self, target: RepositoryId | RepositoryScope = RepositoryScope.ALL) -> SyncReport:
        """Sync one repository, the default one, or all tracked repositories."""
        repositories = self.targets(target)
        results: list[RepositorySyncResult] = []
        for repository in repositories:
            results.append(await self.sync_repository(repository))
        report = SyncReport(results)
        logger.info(
            "Sync finished",
            repositories=len(results),
            succeeded=len(report.succeeded),
            failed=[str(result.repository) for result in report.failed],
        )
        return report

    async def sync_repository(self, repository: RepositoryId) -> RepositorySyncResult:
        """Run one full pass for a repository and report how it went."""
        start_time = time.time()
        started_at = self.clock()
        logger.info("Syncing repository", repository=str(repository))

        seen_numbers: set[int] = set()
        last_seen_update_time: datetime | None = None
        page_cursor: str | None = None
        page_number = 0
        while True:
            page_number += 1
            try:
                page = await self.source.list_issues(repository, state="all", page_cursor=page_cursor, per_page=self.page_size)
            except RemoteError as exc:
                logger.warning(
                    "Sync aborted, cursor left unchanged",
                    repository=str(repository),
                    page=page_number,
                    issues_synced=len(seen_numbers),
                    error=str(exc),
                    error_type=type(exc).__name__,
                    retryable=exc.retryable,
                )
                return RepositorySyncResult(repository, len(seen_numbers), error=exc)

            for issue in page.issues:
                self.store.upsert_issue(repository, issue)
                seen_numbers.add(issue.number)
                if last_seen_update_time is None or issue.updated_at > last_seen_update_time:
                    last_seen_update_time = issue.updated_at

            if page.next_cursor is None:
                break
            page_cursor = page.next_cursor

        issues_synced = len(seen_numbers)
        cursor = SyncCursor(last_synced_at=started_at, last_seen_update_time=last_seen_update_time, issues_seen=issues_synced)
        self.store.set_cursor(repository, cursor)
        logger.info(
            "Synced repository",
            repository=str(repository),
            pages=page_number,
            issues_synced=issues_synced,
            duration=round(time.time() - start_time, 2),
        )
        return RepositorySyncResult(repository, issues_synced, cursor=cursor)
