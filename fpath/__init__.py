"""fpath package exports."""

from .config import DownloadOptions, KVOptions, WatchOptions
from .errors import DownloadError, FpathError, LockingUnsupportedError, WatchError
from .lock import lock_file, supports_locking
from .path import (
    LIST_SEPARATOR,
    SEPARATOR,
    OpenMode,
    Path,
    cwd,
    expand,
    from_url,
    join,
    pretty_size,
)
from .value import Value, ValueMap, load_value_map
from .watcher import Action, ChangeEvent, Watcher, watch

__all__ = [
    "Action",
    "ChangeEvent",
    "DownloadError",
    "DownloadOptions",
    "FpathError",
    "KVOptions",
    "LIST_SEPARATOR",
    "LockingUnsupportedError",
    "OpenMode",
    "Path",
    "SEPARATOR",
    "Value",
    "ValueMap",
    "WatchError",
    "WatchOptions",
    "Watcher",
    "cwd",
    "expand",
    "from_url",
    "join",
    "load_value_map",
    "lock_file",
    "pretty_size",
    "supports_locking",
    "watch",
]
