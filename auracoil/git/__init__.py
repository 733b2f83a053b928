"""Git helpers."""

from .history import Evidence, GitHistory

__all__ = ["Evidence", "GitHistory"]
