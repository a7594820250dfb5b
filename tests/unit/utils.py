"""Shared helpers for unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Literal

from notehub.github.abc import DEFAULT_PAGE_SIZE, RemoteIssueSource
from notehub.github.exceptions import RemoteNotFound
from notehub.schemas.issue import IssuePage, IssueRecord, IssueState
from notehub.schemas.repository import RepositoryId

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_issue(number: int, state: IssueState = IssueState.OPEN, title: str | None = None, **overrides: object) -> IssueRecord:
    """Build an IssueRecord with deterministic timestamps."""
    fields: dict[str, object] = {
        "number": number,
        "title": title or f"Issue {number}",
        "body": f"Body of issue {number}",
        "state": state,
        "author": "octocat",
        "created_at": BASE_TIME + timedelta(hours=number),
        "updated_at": BASE_TIME + timedelta(days=1, hours=number),
        "closed_at": BASE_TIME + timedelta(days=2) if state == IssueState.CLOSED else None,
        "labels": ["bug"],
        "comments": number % 3,
    }
    fields.update(overrides)
    return IssueRecord(**fields)  # type: ignore[arg-type]


class FakeIssueSource(RemoteIssueSource):
    """Scripted remote source that records every call.

    `pages` maps a repository key to the list of pages it returns, in order;
    an entry may be an exception to raise instead. Continuations are opaque
    tokens of the form 'token-<index>'.
    """

    def __init__(
        self,
        pages: dict[str, list[list[IssueRecord] | Exception]] | None = None,
        issues: dict[tuple[str, int], IssueRecord | Exception] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.issues = issues or {}
        self.list_calls: list[tuple[str, str, str | None, int]] = []
        self.get_calls: list[tuple[str, int]] = []

    async def list_issues(
        self,
        repository: RepositoryId,
        state: Literal["open", "closed", "all"] = "all",
        page_cursor: str | None = None,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> IssuePage:
        self.list_calls.append((repository.key, state, page_cursor, per_page))
        pages = self.pages.get(repository.key, [[]])
        index = 0 if page_cursor is None else int(page_cursor.removeprefix("token-"))
        page = pages[index]
        if isinstance(page, Exception):
            raise page
        next_cursor = f"token-{index + 1}" if index + 1 < len(pages) else None
        return IssuePage(issues=page, next_cursor=next_cursor)

    async def get_issue(self, repository: RepositoryId, number: int) -> IssueRecord:
        self.get_calls.append((repository.key, number))
        result = self.issues.get((repository.key, number))
        if result is None:
            raise RemoteNotFound(f"#{number} not found in {repository}")
        if isinstance(result, Exception):
            raise result
        return result
