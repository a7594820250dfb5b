"""Local-only notes attached to cached issues."""

import structlog

from notehub.read.resolver import ReadResolver
from notehub.schemas.issue import Note
from notehub.schemas.repository import RepositoryId
from notehub.storage.cache import CacheStore
from notehub.storage.registry import RepositoryRegistry

logger = structlog.get_logger(__name__)


class NoteService:
    """Adds and lists notes. Notes never leave the local database."""

    def __init__(self, store: CacheStore, registry: RepositoryRegistry, resolver: ReadResolver) -> None:
        """Initialize the service with its collaborators."""
        self.store = store
        self.registry = registry
        self.resolver = resolver

    async def add(self, repository: RepositoryId | None, number: int, text: str) -> Note:
        """Attach a note to an issue, backfilling the issue if it is not cached yet."""
        body = text.strip()
        if not body:
            raise ValueError("Note text must not be empty")
        view = await self.resolver.view(repository, number)
        note = self.store.add_note(view.repository, number, body)
        logger.info("Added note", repository=str(view.repository), issue_number=number, note_id=note.id)
        return note

    def list(self, repository: RepositoryId | None, number: int) -> list[Note]:
        """Notes of an issue, oldest first. Reads the cache only."""
        return self.store.list_notes(self.registry.resolve(repository), number)
