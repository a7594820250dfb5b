"""Identifier for a tracked GitHub repository."""

from dataclasses import dataclass, field
from enum import Enum

from notehub.utils.github import split_repository


@dataclass(frozen=True)
class RepositoryId:
    """A repository identified by owner and name.

    GitHub treats owner and repository names case-insensitively, so equality
    and hashing use the lowercased `key`. `owner` and `name` keep the spelling
    the user typed and are only used for display and API calls.
    """

    owner: str = field(compare=False)
    name: str = field(compare=False)
    key: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", f"{self.owner}/{self.name}".lower())

    @classmethod
    def parse(cls, value: "str | RepositoryId") -> "RepositoryId":
        """Parse an 'owner/name' string. Raises ValueError if malformed."""
        if isinstance(value, RepositoryId):
            return value
        owner, name = split_repository(value)
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


class RepositoryScope(str, Enum):
    """Symbolic repository targets accepted by sync and list."""

    DEFAULT = "default"
    ALL = "all"
