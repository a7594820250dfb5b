"""SQLite connection handling and schema for the local cache."""

import sqlite3
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

import structlog

from notehub.storage.exceptions import CacheCorruption

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DB_FILE_NAME = "notehub.db"
"""Name of the database file inside the data directory."""

BUSY_TIMEOUT_SECONDS = 10.0
"""How long a writer waits for a lock held by another notehub process."""

SCHEMA = """
CREATE TABLE IF NOT EXISTS repositories (
    key TEXT PRIMARY KEY,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    position INTEGER NOT NULL,
    is_default INTEGER NOT NULL DEFAULT 0
);
CREATE UNIQUE INDEX IF NOT EXISTS repositories_single_default
    ON repositories (is_default) WHERE is_default = 1;

CREATE TABLE IF NOT EXISTS issues (
    repository TEXT NOT NULL,
    number INTEGER NOT NULL,
    title TEXT NOT NULL,
    body TEXT,
    state TEXT NOT NULL,
    author TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    closed_at TEXT,
    labels TEXT NOT NULL,
    comments INTEGER NOT NULL,
    html_url TEXT,
    fetched_at TEXT NOT NULL,
    PRIMARY KEY (repository, number)
);
CREATE INDEX IF NOT EXISTS issues_by_state ON issues (repository, state, number);

CREATE TABLE IF NOT EXISTS sync_cursors (
    repository TEXT PRIMARY KEY,
    last_synced_at TEXT NOT NULL,
    last_seen_update_time TEXT,
    issues_seen INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repository TEXT NOT NULL,
    issue_number INTEGER NOT NULL,
    body TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS notes_by_issue ON notes (repository, issue_number, id);
"""


def translate_sqlite_errors(func: F) -> F:
    """Decorator that reports any sqlite3 failure as CacheCorruption."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as exc:
            logger.error("Local cache operation failed", function=func.__name__, error=str(exc), error_type=type(exc).__name__)
            raise CacheCorruption(f"Local cache failure in {func.__name__}: {exc}") from exc

    return wrapper  # type: ignore


class Database:
    """Thin wrapper around one SQLite connection.

    The connection runs in autocommit mode; every write goes through
    `transaction()`, which holds a write lock for the duration of the block
    and commits before returning. WAL mode lets other processes keep reading
    committed data while a write is in progress.
    """

    def __init__(self, connection: sqlite3.Connection, path: Path | None = None) -> None:
        """Wrap an already-opened connection."""
        self.connection = connection
        self.path = path

    @classmethod
    @translate_sqlite_errors
    def open(cls, path: Path) -> "Database":
        """Open (creating if needed) the database at `path` and apply the schema."""
        path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(path, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=FULL")
        connection.executescript(SCHEMA)
        logger.debug("Opened local cache", path=str(path))
        return cls(connection, path)

    @classmethod
    def open_in_directory(cls, data_dir: Path) -> "Database":
        """Open the database file inside a data directory."""
        return cls.open(data_dir / DB_FILE_NAME)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block in one write transaction; roll back if it raises."""
        self.connection.execute("BEGIN IMMEDIATE")
        try:
            yield self.connection
        except BaseException:
            if self.connection.in_transaction:
                self.connection.execute("ROLLBACK")
            raise
        else:
            self.connection.execute("COMMIT")

    def query(self, sql: str, parameters: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Run a read-only statement and return all rows."""
        return self.connection.execute(sql, parameters).fetchall()

    def close(self) -> None:
        """Close the underlying connection."""
        self.connection.close()
