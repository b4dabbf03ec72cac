"""Exception types raised by fpath."""
from __future__ import annotations


class FpathError(Exception):
    """Base class for errors raised by fpath itself.

    Plain filesystem failures are not wrapped: mutating :class:`~fpath.path.Path`
    methods let the builtin :class:`OSError` family propagate.
    """


class DownloadError(FpathError):
    """Raised when :meth:`Path.download_from` cannot fetch or store a URL."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class WatchError(FpathError):
    """Raised when a change-notification subscription cannot be acquired."""


class LockingUnsupportedError(FpathError):
    """Raised when advisory file locking is not available on this platform."""


__all__ = ["DownloadError", "FpathError", "LockingUnsupportedError", "WatchError"]
