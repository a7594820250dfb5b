"""Utility modules for shared functionality."""

from .github import extract_label_names, login_of, split_repository
from .logging import configure_logging

__all__ = [
    "configure_logging",
    "extract_label_names",
    "login_of",
    "split_repository",
]
