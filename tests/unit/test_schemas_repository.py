"""Unit tests for repository identifiers."""

import pytest

from notehub.schemas.repository import RepositoryId


def test_parse_owner_and_name() -> None:
    """Test that an owner/name string is split into its parts."""
    repository = RepositoryId.parse("octo-org/hello-world")
    assert repository.owner == "octo-org"
    assert repository.name == "hello-world"
    assert str(repository) == "octo-org/hello-world"


def test_parse_strips_whitespace_and_slashes() -> None:
    """Test that surrounding whitespace and slashes are ignored."""
    assert str(RepositoryId.parse("  /owner/repo/ ")) == "owner/repo"


@pytest.mark.parametrize("value", ["", "owner", "owner/", "/repo", "a/b/c", "owner/ /"])
def test_parse_rejects_malformed(value: str) -> None:
    """Test that anything but exactly owner/name is rejected."""
    with pytest.raises(ValueError):
        RepositoryId.parse(value)


def test_comparison_is_case_insensitive() -> None:
    """Test that repositories differing only in case are equal and hash the same."""
    upper = RepositoryId.parse("Octo-Org/Hello-World")
    lower = RepositoryId.parse("octo-org/hello-world")
    assert upper == lower
    assert hash(upper) == hash(lower)
    assert upper.key == "octo-org/hello-world"
    assert str(upper) == "Octo-Org/Hello-World"


def test_parse_returns_existing_instance() -> None:
    """Test that parsing a RepositoryId returns it unchanged."""
    repository = RepositoryId.parse("owner/repo")
    assert RepositoryId.parse(repository) is repository
