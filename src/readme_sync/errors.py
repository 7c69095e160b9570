"""Exception types raised by readme_sync.

Only ``ConfigurationError`` is meant to stop a run; everything else is
caught per document by the sync engine and recorded in the report.
"""

from __future__ import annotations


class ReadmeSyncError(Exception):
    """Base class for all readme_sync errors."""


class ConfigurationError(ReadmeSyncError, ValueError):
    """Invalid configuration detected before any remote call is made."""


class DocNotFound(ReadmeSyncError):
    """The remote store has no document with the requested slug.

    This is the signal that drives the create path, not a failure.
    """

    def __init__(self, slug: str) -> None:
        super().__init__(f"Document '{slug}' not found")
        self.slug = slug


class TransportError(ReadmeSyncError):
    """A remote call failed for a reason other than "not found"."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParentResolutionError(ReadmeSyncError):
    """A document's declared parent could not be made to exist remotely."""


class StaleElementError(ValueError):
    """An element was applied to a document snapshot it was not parsed from."""
