"""Fixtures for unit tests."""

from pathlib import Path
from typing import Generator

import pytest
import structlog

from notehub.storage.cache import CacheStore
from notehub.storage.database import Database
from notehub.storage.registry import RepositoryRegistry


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def database(tmp_path: Path) -> Generator[Database, None, None]:
    """A fresh on-disk cache database."""
    db = Database.open_in_directory(tmp_path)
    yield db
    db.close()


@pytest.fixture
def store(database: Database) -> CacheStore:
    """A cache store on the test database."""
    return CacheStore(database)


@pytest.fixture
def registry(database: Database) -> RepositoryRegistry:
    """An empty repository registry on the test database."""
    return RepositoryRegistry.load(database)
