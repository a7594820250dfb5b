"""Registry of tracked repositories and the default ("active") one."""

import sqlite3

import structlog

from notehub.configuration.exceptions import NoDefaultSet
from notehub.schemas.repository import RepositoryId
from notehub.storage.database import Database, translate_sqlite_errors
from notehub.storage.exceptions import AlreadyTracked, NotTracked

logger = structlog.get_logger(__name__)

SELECT_REPOSITORIES = "SELECT key, owner, name, is_default FROM repositories ORDER BY position ASC"


def _from_rows(rows: list[sqlite3.Row]) -> tuple[list[RepositoryId], RepositoryId | None]:
    repositories = [RepositoryId(owner=row["owner"], name=row["name"]) for row in rows]
    default = next((repository for repository, row in zip(repositories, rows) if row["is_default"]), None)
    return repositories, default


class RepositoryRegistry:
    """Tracked repositories, loaded once per process and written through on every change.

    Mutations decide against the table inside their write transaction, not
    against the copy loaded at start-up, so concurrent notehub processes see
    each other's changes. The in-memory copy is refreshed after every write.
    No repository is ever made the default implicitly.
    """

    def __init__(self, database: Database, repositories: list[RepositoryId], default: RepositoryId | None) -> None:
        """Initialize the registry from already-loaded rows. Use `load` instead."""
        self.database = database
        self._repositories = repositories
        self._default = default

    @classmethod
    @translate_sqlite_errors
    def load(cls, database: Database) -> "RepositoryRegistry":
        """Read the tracked repositories from the database."""
        repositories, default = _from_rows(database.query(SELECT_REPOSITORIES))
        logger.debug("Loaded repository registry", tracked=len(repositories), default=str(default) if default else None)
        return cls(database, repositories, default)

    def _refresh(self, connection: sqlite3.Connection) -> None:
        self._repositories, self._default = _from_rows(connection.execute(SELECT_REPOSITORIES).fetchall())

    @translate_sqlite_errors
    def add(self, repository: RepositoryId) -> RepositoryId:
        """Start tracking a repository. Raises AlreadyTracked if it is tracked.

        The new repository is not made the default; use `set_default`.
        """
        with self.database.transaction() as connection:
            existing = connection.execute("SELECT owner, name FROM repositories WHERE key = ?", (repository.key,)).fetchone()
            if existing is not None:
                self._refresh(connection)
                raise AlreadyTracked(f"{existing['owner']}/{existing['name']}")
            connection.execute(
                """
                INSERT INTO repositories (key, owner, name, position, is_default)
                VALUES (?, ?, ?, (SELECT COALESCE(MAX(position), 0) + 1 FROM repositories), 0)
                """,
                (repository.key, repository.owner, repository.name),
            )
            self._refresh(connection)
        logger.info("Tracking repository", repository=str(repository))
        return repository

    @translate_sqlite_errors
    def set_default(self, repository: RepositoryId) -> RepositoryId:
        """Make a tracked repository the default. Raises NotTracked otherwise."""
        with self.database.transaction() as connection:
            row = connection.execute("SELECT owner, name FROM repositories WHERE key = ?", (repository.key,)).fetchone()
            if row is None:
                self._refresh(connection)
                raise NotTracked(str(repository))
            connection.execute("UPDATE repositories SET is_default = 0 WHERE is_default = 1")
            connection.execute("UPDATE repositories SET is_default = 1 WHERE key = ?", (repository.key,))
            self._refresh(connection)
        tracked = RepositoryId(owner=row["owner"], name=row["name"])
        logger.info("Default repository set", repository=str(tracked))
        return tracked

    def list(self) -> list[RepositoryId]:
        """Tracked repositories in the order they were added."""
        return list(self._repositories)

    def default(self) -> RepositoryId:
        """The default repository. Raises NoDefaultSet when there is none."""
        if self._default is None:
            raise NoDefaultSet()
        return self._default

    def is_tracked(self, repository: RepositoryId) -> bool:
        """Whether the repository was added (case-insensitive)."""
        return repository in self._repositories

    def require(self, repository: RepositoryId) -> RepositoryId:
        """Return the tracked entry matching `repository`, or raise NotTracked."""
        for tracked in self._repositories:
            if tracked == repository:
                return tracked
        raise NotTracked(str(repository))

    def resolve(self, repository: RepositoryId | None) -> RepositoryId:
        """An explicit repository must be tracked; None means the default."""
        if repository is None:
            return self.default()
        return self.require(repository)
