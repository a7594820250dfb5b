"""Pydantic models for cached issues, sync cursors and notes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssueState(str, Enum):
    """State of an issue on GitHub."""

    OPEN = "open"
    CLOSED = "closed"


class StateFilter(str, Enum):
    """Which issues a listing returns."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


class IssueRecord(BaseModel):
    """Last known state of a GitHub issue."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(gt=0)
    title: str
    body: str | None = None
    state: IssueState
    author: str | None = None
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    labels: list[str] = Field(default_factory=list)
    comments: int = 0
    html_url: str | None = None

    @field_validator("labels")
    @classmethod
    def normalize_labels(cls, labels: list[str]) -> list[str]:
        """Store labels as a set: unique and sorted."""
        return sorted(set(labels))


class IssuePage(BaseModel):
    """One page of issues plus the opaque continuation for the next page."""

    issues: list[IssueRecord]
    next_cursor: str | None = None


class SyncCursor(BaseModel):
    """Marker of the last fully successful sync pass of a repository."""

    last_synced_at: datetime
    last_seen_update_time: datetime | None = None
    issues_seen: int = 0


class Note(BaseModel):
    """A local-only note attached to a cached issue."""

    id: int
    repository: str
    issue_number: int
    body: str
    created_at: datetime
