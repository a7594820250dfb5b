"""Local cache of GitHub issues, sync cursors and notes, backed by SQLite."""

import json
import sqlite3
from datetime import datetime, timezone
from typing import Callable

import structlog

from notehub.schemas.issue import IssueRecord, IssueState, Note, StateFilter, SyncCursor
from notehub.schemas.repository import RepositoryId
from notehub.storage.database import Database, translate_sqlite_errors
from notehub.storage.exceptions import IssueNotCached

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


def _issue_from_row(row: sqlite3.Row) -> IssueRecord:
    return IssueRecord(
        number=row["number"],
        title=row["title"],
        body=row["body"],
        state=IssueState(row["state"]),
        author=row["author"],
        created_at=_from_text(row["created_at"]),
        updated_at=_from_text(row["updated_at"]),
        closed_at=_from_text(row["closed_at"]),
        labels=json.loads(row["labels"]),
        comments=row["comments"],
        html_url=row["html_url"],
    )


class CacheStore:
    """Persistent issue cache partitioned by repository.

    Every write is a single transaction committed before the method returns,
    so a reader in another process sees either the previous record or the new
    one, never a mix. A sync pass is many such writes and is not atomic as a
    whole.
    """

    def __init__(self, database: Database, clock: Clock = utc_now) -> None:
        """Initialize the store on an opened database."""
        self.database = database
        self.clock = clock

    # Issues
    @translate_sqlite_errors
    def upsert_issue(self, repository: RepositoryId, issue: IssueRecord) -> None:
        """Insert or fully replace the cached record for (repository, issue.number)."""
        with self.database.transaction() as connection:
            connection.execute(
                """
                INSERT INTO issues (
                    repository, number, title, body, state, author, created_at,
                    updated_at, closed_at, labels, comments, html_url, fetched_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (repository, number) DO UPDATE SET
                    title = excluded.title,
                    body = excluded.body,
                    state = excluded.state,
                    author = excluded.author,
                    created_at = excluded.created_at,
                    updated_at = excluded.updated_at,
                    closed_at = excluded.closed_at,
                    labels = excluded.labels,
                    comments = excluded.comments,
                    html_url = excluded.html_url,
                    fetched_at = excluded.fetched_at
                """,
                (
                    repository.key,
                    issue.number,
                    issue.title,
                    issue.body,
                    issue.state.value,
                    issue.author,
                    _to_text(issue.created_at),
                    _to_text(issue.updated_at),
                    _to_text(issue.closed_at),
                    json.dumps(issue.labels),
                    issue.comments,
                    issue.html_url,
                    _to_text(self.clock()),
                ),
            )
        logger.debug("Cached issue", repository=repository.key, issue_number=issue.number, state=issue.state.value)

    @translate_sqlite_errors
    def get_issue(self, repository: RepositoryId, number: int) -> IssueRecord:
        """Return the cached issue or raise IssueNotCached."""
        rows = self.database.query("SELECT * FROM issues WHERE repository = ? AND number = ?", (repository.key, number))
        if not rows:
            raise IssueNotCached(str(repository), number)
        return _issue_from_row(rows[0])

    def _select_issues(self, repository: RepositoryId | None, state_filter: StateFilter) -> list[sqlite3.Row]:
        clauses: list[str] = []
        parameters: list[object] = []
        if repository is not None:
            clauses.append("repository = ?")
            parameters.append(repository.key)
        if state_filter != StateFilter.ALL:
            clauses.append("state = ?")
            parameters.append(state_filter.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return self.database.query(f"SELECT * FROM issues {where} ORDER BY number DESC, repository ASC", tuple(parameters))

    @translate_sqlite_errors
    def list_issues(self, repository: RepositoryId | None, state_filter: StateFilter = StateFilter.ALL) -> list[IssueRecord]:
        """List cached issues, newest number first.

        `repository=None` lists every repository; ties on the issue number are
        then ordered by repository key.
        """
        return [_issue_from_row(row) for row in self._select_issues(repository, state_filter)]

    @translate_sqlite_errors
    def list_issues_with_repository(
        self, repository: RepositoryId | None, state_filter: StateFilter = StateFilter.ALL
    ) -> list[tuple[str, IssueRecord]]:
        """Same as list_issues, pairing each issue with its repository key."""
        return [(row["repository"], _issue_from_row(row)) for row in self._select_issues(repository, state_filter)]

    # Sync cursors
    @translate_sqlite_errors
    def get_cursor(self, repository: RepositoryId) -> SyncCursor | None:
        """Return the cursor of the last full sync, or None if never synced."""
        rows = self.database.query("SELECT * FROM sync_cursors WHERE repository = ?", (repository.key,))
        if not rows:
            return None
        row = rows[0]
        return SyncCursor(
            last_synced_at=_from_text(row["last_synced_at"]),
            last_seen_update_time=_from_text(row["last_seen_update_time"]),
            issues_seen=row["issues_seen"],
        )

    @translate_sqlite_errors
    def set_cursor(self, repository: RepositoryId, cursor: SyncCursor) -> None:
        """Replace the sync cursor of a repository."""
        with self.database.transaction() as connection:
            connection.execute(
                """
                INSERT INTO sync_cursors (repository, last_synced_at, last_seen_update_time, issues_seen)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (repository) DO UPDATE SET
                    last_synced_at = excluded.last_synced_at,
                    last_seen_update_time = excluded.last_seen_update_time,
                    issues_seen = excluded.issues_seen
                """,
                (repository.key, _to_text(cursor.last_synced_at), _to_text(cursor.last_seen_update_time), cursor.issues_seen),
            )
        logger.debug("Updated sync cursor", repository=repository.key, last_synced_at=_to_text(cursor.last_synced_at))

    # Notes
    @translate_sqlite_errors
    def add_note(self, repository: RepositoryId, number: int, body: str) -> Note:
        """Attach a local note to an issue and return it."""
        created_at = self.clock()
        with self.database.transaction() as connection:
            cursor = connection.execute(
                "INSERT INTO notes (repository, issue_number, body, created_at) VALUES (?, ?, ?, ?)",
                (repository.key, number, body, _to_text(created_at)),
            )
            note_id = cursor.lastrowid
        return Note(id=note_id, repository=repository.key, issue_number=number, body=body, created_at=created_at)

    @translate_sqlite_errors
    def list_notes(self, repository: RepositoryId, number: int) -> list[Note]:
        """Notes of an issue in the order they were added."""
        rows = self.database.query(
            "SELECT * FROM notes WHERE repository = ? AND issue_number = ? ORDER BY id ASC",
            (repository.key, number),
        )
        return [
            Note(
                id=row["id"],
                repository=row["repository"],
                issue_number=row["issue_number"],
                body=row["body"],
                created_at=_from_text(row["created_at"]),
            )
            for row in rows
        ]
