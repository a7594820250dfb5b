"""Contains utility functions for GitHub identifiers."""

from typing import Any, Sequence

from notehub.utils.types import HasName, LabelType


def split_repository(repo: str | None) -> tuple[str, str]:
    """Splits a repository identifier into owner and repository name."""
    if repo is None:
        raise ValueError("A repository in the format 'owner/repo' is required.")
    repo = repo.strip().strip("/")
    parts = [part.strip() for part in repo.split("/")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Repository must be in the format 'owner/repo' with no extra parts, got {repo!r}.")
    owner, repository = parts
    return owner, repository


def extract_label_names(labels: Sequence[LabelType] | None) -> list[str]:
    """Extract sorted, unique label names from GitHub label objects, strings, or dicts."""
    names: set[str] = set()
    for label in labels or []:
        if isinstance(label, str):
            names.add(label)
        elif isinstance(label, dict) and label.get("name"):
            names.add(label["name"])
        elif isinstance(label, HasName) and label.name:
            names.add(label.name)
    return sorted(names)


def login_of(user: Any) -> str | None:
    """Return the login of a GitHub user object, or None for deleted/ghost users."""
    if not user:
        return None
    login = getattr(user, "login", None)
    return login if isinstance(login, str) else None
