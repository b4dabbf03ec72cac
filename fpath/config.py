"""Configuration constants and option structures for fpath."""

from __future__ import annotations

from dataclasses import dataclass

# Permission bits for every file fpath creates.
FILE_MODE = 0o644
# Default for Path.mkdir; the process umask still applies.
DIR_MODE = 0o777


@dataclass(frozen=True)
class DownloadOptions:
    """Options that control :meth:`Path.download_from`."""

    chunk_size: int = 64 * 1024
    timeout: float | None = 30.0
    follow_redirects: bool = True


@dataclass(frozen=True)
class WatchOptions:
    """Options that control a :class:`~fpath.watcher.Watcher`."""

    recursive: bool = True
    # Seconds the loop waits on its queue before re-checking for shutdown.
    poll_interval: float = 0.1


@dataclass(frozen=True)
class KVOptions:
    """Parsing flags for key/value files, see :func:`fpath.value.load_value_map`."""

    separator: str = "="
    unquote: bool = False
    expand_vars: bool = False
    set_env: bool = False


__all__ = ["DIR_MODE", "FILE_MODE", "DownloadOptions", "KVOptions", "WatchOptions"]
