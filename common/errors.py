from __future__ import annotations

from datetime import datetime


class DocsLoreError(Exception):
    """Base class for errors raised by the ingestion and answering pipeline."""


class ContentSourceError(DocsLoreError):
    """The documentation repository could not serve a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ContentSourceError):
    """The repository API rejected a request until ``reset_at``."""

    def __init__(self, reset_at: datetime, status_code: int | None = None):
        super().__init__(f"Rate limited until {reset_at.isoformat()}", status_code)
        self.reset_at = reset_at


class RepositoryPathError(DocsLoreError):
    """A crawled path is neither a file nor a directory."""

    def __init__(self, path: str, entry_type: str | None = None):
        super().__init__(f"Repository path does not exist: {path} (type={entry_type})")
        self.path = path
        self.entry_type = entry_type
