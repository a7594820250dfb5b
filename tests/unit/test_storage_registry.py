"""Unit tests for the repository registry."""

import pytest

from notehub.configuration.exceptions import ConfigError, NoDefaultSet
from notehub.schemas.repository import RepositoryId
from notehub.storage.database import Database
from notehub.storage.exceptions import AlreadyTracked, NotTracked
from notehub.storage.registry import RepositoryRegistry

REPO_X = RepositoryId.parse("a/x")
REPO_Y = RepositoryId.parse("a/y")
REPO_Z = RepositoryId.parse("a/z")


def test_empty_registry_has_no_default(registry: RepositoryRegistry) -> None:
    """Test that an empty registry lists nothing and has no default."""
    assert registry.list() == []
    with pytest.raises(NoDefaultSet):
        registry.default()


def test_no_default_is_a_config_error() -> None:
    """Test that a missing default is reported as a configuration problem."""
    assert issubclass(NoDefaultSet, ConfigError)
    assert NoDefaultSet.retryable is False


def test_list_preserves_insertion_order(registry: RepositoryRegistry) -> None:
    """Test that repositories are listed in the order they were added."""
    for repository in (REPO_Y, REPO_X, REPO_Z):
        registry.add(repository)
    assert registry.list() == [REPO_Y, REPO_X, REPO_Z]


def test_add_duplicate_raises(registry: RepositoryRegistry) -> None:
    """Test that adding a tracked repository again raises AlreadyTracked, ignoring case."""
    registry.add(REPO_X)
    with pytest.raises(AlreadyTracked):
        registry.add(RepositoryId.parse("A/X"))
    assert registry.list() == [REPO_X]


def test_add_never_sets_a_default(registry: RepositoryRegistry, database: Database) -> None:
    """Test that tracking repositories leaves the default unset until one is chosen."""
    registry.add(REPO_X)
    registry.add(REPO_Y)
    with pytest.raises(NoDefaultSet):
        registry.default()
    assert database.query("SELECT key FROM repositories WHERE is_default = 1") == []


def test_set_default_switches_the_single_default(registry: RepositoryRegistry, database: Database) -> None:
    """Test that at most one repository is the default at any time."""
    registry.add(REPO_X)
    registry.add(REPO_Y)
    registry.set_default(REPO_Y)
    assert registry.default() == REPO_Y
    rows = database.query("SELECT key FROM repositories WHERE is_default = 1")
    assert [row["key"] for row in rows] == ["a/y"]


def test_set_default_requires_tracked_repository(registry: RepositoryRegistry) -> None:
    """Test that only tracked repositories can become the default."""
    registry.add(REPO_X)
    with pytest.raises(NotTracked):
        registry.set_default(REPO_Z)
    with pytest.raises(NoDefaultSet):
        registry.default()


def test_mutations_are_persisted_immediately(registry: RepositoryRegistry, database: Database) -> None:
    """Test that a freshly loaded registry sees every change."""
    registry.add(RepositoryId.parse("A/X"))
    registry.add(REPO_Y)
    registry.set_default(REPO_Y)
    reloaded = RepositoryRegistry.load(database)
    assert reloaded.list() == [REPO_X, REPO_Y]
    assert str(reloaded.list()[0]) == "A/X"
    assert reloaded.default() == REPO_Y


def test_resolve(registry: RepositoryRegistry) -> None:
    """Test that resolve returns tracked repositories and falls back to the default."""
    with pytest.raises(NoDefaultSet):
        registry.resolve(None)
    registry.add(REPO_X)
    registry.add(REPO_Y)
    with pytest.raises(NoDefaultSet):
        registry.resolve(None)
    registry.set_default(REPO_X)
    assert registry.resolve(None) == REPO_X
    assert registry.resolve(REPO_Y) == REPO_Y
    with pytest.raises(NotTracked):
        registry.resolve(REPO_Z)


def test_require_returns_tracked_spelling(registry: RepositoryRegistry) -> None:
    """Test that require returns the entry as it was added."""
    registry.add(RepositoryId.parse("Octo/Repo"))
    assert str(registry.require(RepositoryId.parse("octo/repo"))) == "Octo/Repo"


def test_concurrent_registries_see_each_other(database: Database) -> None:
    """Test that two registries on one cache decide against the stored rows, not their loaded copy."""
    assert database.path is not None
    other_database = Database.open(database.path)
    try:
        first = RepositoryRegistry.load(database)
        second = RepositoryRegistry.load(other_database)

        first.add(REPO_X)
        with pytest.raises(AlreadyTracked):
            second.add(RepositoryId.parse("A/X"))
        assert second.list() == [REPO_X]

        second.add(REPO_Y)
        second.set_default(REPO_Y)
        first.set_default(REPO_X)
        assert first.list() == [REPO_X, REPO_Y]
        assert first.default() == REPO_X
        rows = database.query("SELECT key FROM repositories WHERE is_default = 1")
        assert [row["key"] for row in rows] == ["a/x"]
    finally:
        other_database.close()


def test_set_default_sees_repository_added_elsewhere(database: Database) -> None:
    """Test that set_default accepts a repository another process just added."""
    assert database.path is not None
    other_database = Database.open(database.path)
    try:
        stale = RepositoryRegistry.load(database)
        RepositoryRegistry.load(other_database).add(REPO_Y)
        assert stale.set_default(REPO_Y) == REPO_Y
        assert stale.list() == [REPO_Y]
        assert stale.default() == REPO_Y
    finally:
        other_database.close()
