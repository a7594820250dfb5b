"""Builds the per-invocation application objects."""

from pathlib import Path

import structlog

from notehub.github.abc import DEFAULT_PAGE_SIZE, RemoteIssueSource
from notehub.github.adapter import GitHubKitAdapter
from notehub.notes.service import NoteService
from notehub.read.resolver import ReadResolver
from notehub.storage.cache import CacheStore
from notehub.storage.database import Database
from notehub.storage.registry import RepositoryRegistry
from notehub.synchronize.engine import SyncEngine

logger = structlog.get_logger(__name__)


def build_remote_source(github_pat_token: str | None, github_api_url: str) -> RemoteIssueSource:
    """Create the GitHub-backed remote issue source."""
    if not github_pat_token:
        logger.info("No GitHub token configured, using anonymous access")
    return GitHubKitAdapter.create(github_pat_token=github_pat_token, github_api_url=github_api_url)


class AppContext:
    """Everything one CLI invocation needs, wired around a single database connection.

    The registry is loaded once here and handed explicitly to every
    component that needs the tracked or default repository.
    """

    def __init__(self, database: Database, source: RemoteIssueSource, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        """Wire the components around an opened database."""
        self.database = database
        self.source = source
        self.store = CacheStore(database)
        self.registry = RepositoryRegistry.load(database)
        self.engine = SyncEngine(self.store, self.registry, source, page_size=page_size)
        self.resolver = ReadResolver(self.store, self.registry, source)
        self.notes = NoteService(self.store, self.registry, self.resolver)

    @classmethod
    def open(cls, data_dir: Path, source: RemoteIssueSource, page_size: int = DEFAULT_PAGE_SIZE) -> "AppContext":
        """Open the cache database in `data_dir` and wire the components."""
        return cls(Database.open_in_directory(data_dir), source, page_size=page_size)

    def close(self) -> None:
        """Release the database connection."""
        self.database.close()
