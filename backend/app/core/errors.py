"""Error taxonomy shared by the content source client and the cache layer."""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for errors raised by the directory data layer."""


class ContentSourceError(DirectoryError):
    """Raised when the content source could not produce a usable answer."""


class SourceUnavailable(ContentSourceError):
    """Raised when the content source cannot be reached (network, DNS, timeout)."""


class SourceError(ContentSourceError):
    """Raised when the content source answers with a structured error payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CacheBackendError(DirectoryError):
    """Raised by cache backends for any transport level failure."""


class CacheUnavailable(CacheBackendError):
    """Raised when the cache backend refuses, times out, or drops the connection."""


class CacheReadDisallowed(CacheBackendError):
    """Raised when cache reads are not permitted in the current execution mode."""


class CacheWriteFailed(CacheBackendError):
    """Raised when a value could not be stored; only ever logged."""


class ComputeFailed(DirectoryError):
    """Raised when the computation behind a cache key failed."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Computing cache key {key!r} failed")
        self.key = key


__all__ = [
    "CacheBackendError",
    "CacheReadDisallowed",
    "CacheUnavailable",
    "CacheWriteFailed",
    "ComputeFailed",
    "ContentSourceError",
    "DirectoryError",
    "SourceError",
    "SourceUnavailable",
]
