"""Advisory file locking (Unix only)."""
from __future__ import annotations

import logging
import os
from pathlib import Path as _FsPath
from typing import BinaryIO

try:  # pragma: no cover - platform dependent
    import fcntl
except ImportError:  # pragma: no cover - platform dependent
    fcntl = None  # type: ignore[assignment]

from .config import FILE_MODE
from .errors import LockingUnsupportedError
from .logger import get_logger, log_event


def supports_locking() -> bool:
    """Return True when :func:`lock_file` can work on this platform."""

    return fcntl is not None


def lock_file(path: str | os.PathLike[str]) -> BinaryIO:
    """Create *path* and take an exclusive advisory lock on the whole file.

    The file is truncated, like any newly created file. The lock is released
    when the returned file object is closed. Raises :class:`OSError` if
    another process holds the lock and :class:`LockingUnsupportedError`
    where ``fcntl`` is unavailable.
    """

    if fcntl is None:
        raise LockingUnsupportedError("file locking requires fcntl")

    target = _FsPath(path)
    fd = os.open(target, os.O_RDWR | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    handle = os.fdopen(fd, "r+b")
    try:
        fcntl.lockf(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        handle.close()
        raise

    log_event(
        get_logger("lock"),
        level=logging.DEBUG,
        action="lock.acquired",
        message=f"Locked {target}",
        extra={"path": str(target), "pid": os.getpid()},
    )
    return handle


__all__ = ["lock_file", "supports_locking"]
