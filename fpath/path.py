"""String-backed path type with chainable, pathlib-style operations."""
from __future__ import annotations

import glob as _glob
import json
import logging
import os
import re
import shutil
import stat as _stat
import time
from dataclasses import dataclass
from enum import Enum
from typing import IO, TYPE_CHECKING, Any, BinaryIO, Callable, MutableMapping

import httpx

from .config import DIR_MODE, FILE_MODE, DownloadOptions, KVOptions
from .errors import DownloadError
from .logger import get_logger, log_event
from .utils import fs

if TYPE_CHECKING:
    from .value import ValueMap

SEPARATOR = os.sep
LIST_SEPARATOR = os.pathsep

LOGGER_NAME = "path"

_SIZE_UNITS = "KMGTPE"


class OpenMode(Enum):
    """Ways :meth:`Path.open` can open a file: ``(os flags, file mode)``."""

    READ = (os.O_RDONLY, "rb")
    WRITE = (os.O_WRONLY | os.O_CREAT, "wb")
    READ_WRITE = (os.O_RDWR | os.O_CREAT, "r+b")
    APPEND = (os.O_RDWR | os.O_CREAT | os.O_APPEND, "a+b")
    NEW_WRITE = (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "wb")

    @property
    def flags(self) -> int:
        return self.value[0]

    @property
    def file_mode(self) -> str:
        return self.value[1]


def _environ_lookup(name: str) -> str | None:
    return os.environ.get(name)


def join(*elements: str | os.PathLike[str]) -> Path:
    """Join *elements* into a lexically cleaned :class:`Path`."""

    return Path(fs.join(*(os.fspath(element) for element in elements)))


def expand(
    template: str | os.PathLike[str],
    lookup: Callable[[str], str | None] | None = None,
) -> Path:
    """Return a :class:`Path` with ``$NAME``/``${NAME}`` tokens substituted.

    Names resolve through *lookup*, or the process environment by default.
    Unknown names become the empty string.
    """

    return Path(fs.expand_vars(os.fspath(template), lookup or _environ_lookup))


def cwd() -> Path | None:
    """Return the current working directory, or None if it cannot be determined."""

    try:
        return Path(os.getcwd())
    except OSError:
        return None


def from_url(
    url: str,
    target: str | None = None,
    *,
    client: httpx.Client | None = None,
    options: DownloadOptions | None = None,
) -> Path:
    """Download *url* to *target* (default: the URL's base name) and return the path.

    *target* is environment-expanded first. Nothing is fetched when the
    target already exists.
    """

    if target is None:
        try:
            target = fs.basename(httpx.URL(url).path)
        except httpx.InvalidURL as exc:
            raise DownloadError(f"Invalid URL {url!r}: {exc}", url=url) from exc
    path = expand(target)
    path.download_from(url, client=client, options=options)
    return path


def pretty_size(num_bytes: int) -> str:
    """Format *num_bytes* with IEC units, e.g. ``1536 -> "1.5 KB"``."""

    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {_SIZE_UNITS[exp]}B"


@dataclass(frozen=True, slots=True)
class Path:
    """Immutable wrapper around a filesystem path string.

    Nothing about the filesystem is cached: every query stats again. Queries
    swallow errors and return a sentinel (``None``, ``-1``, ``False``) unless
    called with ``strict=True``; mutations raise :class:`OSError`.
    """

    value: str = ""

    def __str__(self) -> str:
        return self.value

    def __fspath__(self) -> str:
        return self.value

    def __truediv__(self, other: str | os.PathLike[str]) -> Path:
        return self.join(other)

    # -- derivation ---------------------------------------------------------
    def join(self, *elements: str | os.PathLike[str]) -> Path:
        return join(self.value, join(*elements).value)

    def expand(self, lookup: Callable[[str], str | None] | None = None) -> Path:
        return expand(self.value, lookup)

    def abs(self) -> Path:
        """Return the absolute, lexically cleaned path.

        A relative path gives ``Path("")`` when the working directory cannot
        be determined, e.g. after it was deleted.
        """

        if os.path.isabs(self.value):
            return Path(fs.clean(self.value))
        base = cwd()
        if base is None:
            return Path()
        return Path(fs.clean(os.path.join(base.value, self.value)))

    def parent(self) -> Path:
        return Path(fs.dirname(self.value))

    def parents(self, level: int) -> Path:
        """Apply :meth:`parent` ``level + 1`` times."""

        path = self.value
        for _ in range(level + 1):
            path = fs.dirname(path)
        return Path(path)

    def dir(self) -> str:
        return fs.dirname(self.value)

    def base(self) -> str:
        return fs.basename(self.value)

    def stem(self) -> str:
        base = self.base()
        index = base.rfind(".")
        return base[:index] if index > 0 else base

    def ext(self) -> str:
        base = self.base()
        index = base.rfind(".")
        return base[index:] if index > 0 else ""

    def with_prefix(self, prefix: str) -> Path:
        return self.parent().join(prefix + self.base())

    def with_suffix(self, suffix: str) -> Path:
        return self.parent().join(self.stem() + suffix)

    def match(self, pattern: str) -> bool:
        return fs.match(pattern, self.value)

    # -- queries ------------------------------------------------------------
    def stat(self, *, strict: bool = False) -> os.stat_result | None:
        try:
            return os.stat(self.value)
        except (OSError, ValueError):
            if strict:
                raise
            return None

    def size(self, *, strict: bool = False) -> int:
        result = self.stat(strict=strict)
        return result.st_size if result is not None else -1

    def pretty_size(self) -> str:
        result = self.stat()
        return pretty_size(result.st_size) if result is not None else "0 B"

    def exists(self) -> bool:
        return self.stat() is not None

    def is_dir(self) -> bool:
        result = self.stat()
        return result is not None and _stat.S_ISDIR(result.st_mode)

    def is_file(self) -> bool:
        result = self.stat()
        return result is not None and not _stat.S_ISDIR(result.st_mode)

    def read_link(self, *, strict: bool = False) -> Path | None:
        try:
            return Path(os.readlink(self.value))
        except (OSError, ValueError):
            if strict:
                raise
            return None

    # -- mutations ----------------------------------------------------------
    def touch(self) -> None:
        """Create the file, truncating it to zero length if it exists."""

        fd = os.open(self.value, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        os.close(fd)

    def remove(self) -> None:
        """Remove a file, a symlink or an empty directory."""

        if os.path.isdir(self.value) and not os.path.islink(self.value):
            os.rmdir(self.value)
        else:
            os.remove(self.value)

    def remove_all(self) -> None:
        """Remove the path and everything below it; a missing path is fine."""

        if os.path.isdir(self.value) and not os.path.islink(self.value):
            shutil.rmtree(self.value)
            return
        try:
            os.remove(self.value)
        except FileNotFoundError:
            pass

    def mkdir(self, mode: int = DIR_MODE, parents: bool = False) -> None:
        if parents:
            os.makedirs(self.value, mode, exist_ok=True)
        else:
            os.mkdir(self.value, mode)

    # -- listing ------------------------------------------------------------
    def read_dir(self) -> list[os.DirEntry[str]]:
        """Return the directory entries sorted by name, or ``[]`` on error."""

        try:
            with os.scandir(self.value or ".") as entries:
                return sorted(entries, key=lambda entry: entry.name)
        except OSError:
            return []

    def list_dir(self, hidden: bool = False) -> list[Path]:
        return [
            self.join(entry.name)
            for entry in self.read_dir()
            if hidden or not entry.name.startswith(".")
        ]

    def glob(self, pattern: str) -> list[Path]:
        try:
            found = _glob.glob(self.join(pattern).value, include_hidden=True)
        except (OSError, ValueError):
            return []
        return [Path(name) for name in sorted(found)]

    def find(self, regex: str, handler: Callable[[Path], Any]) -> bool:
        """Call *handler* for each direct child whose name matches *regex*.

        Returns whether the directory has any entries at all, not whether
        anything matched. An invalid expression returns False.
        """

        try:
            compiled = re.compile(regex)
        except re.error:
            return False
        entries = self.read_dir()
        for entry in entries:
            if compiled.search(entry.name):
                handler(self.join(entry.name))
        return len(entries) > 0

    # -- network ------------------------------------------------------------
    def download_from(
        self,
        url: str,
        *,
        client: httpx.Client | None = None,
        options: DownloadOptions | None = None,
    ) -> None:
        """Fetch *url* into this path unless the path already exists.

        The body is streamed straight into the file, so a failure half way
        through can leave a partial file behind.
        """

        logger = get_logger(LOGGER_NAME)
        if self.exists():
            log_event(
                logger,
                level=logging.DEBUG,
                action="download.skip",
                message=f"{self.value} already exists",
                extra={"path": self.value, "url": url},
            )
            return

        options = options or DownloadOptions()
        owned = client is None
        http = client or httpx.Client(
            timeout=options.timeout, follow_redirects=options.follow_redirects
        )
        started = time.monotonic()
        written = 0
        try:
            with http.stream("GET", url, follow_redirects=options.follow_redirects) as response:
                response.raise_for_status()
                with self.open(OpenMode.NEW_WRITE) as out:
                    for chunk in response.iter_bytes(options.chunk_size):
                        out.write(chunk)
                        written += len(chunk)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self._log_download_error(logger, url, exc)
            raise DownloadError(
                f"GET {url} returned HTTP {status}", url=url, status_code=status
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            self._log_download_error(logger, url, exc)
            raise DownloadError(f"Failed to download {url}: {exc}", url=url) from exc
        finally:
            if owned:
                http.close()

        log_event(
            logger,
            level=logging.INFO,
            action="download.done",
            message=f"Downloaded {url} -> {self.value}",
            bytes_processed=written,
            duration_ms=(time.monotonic() - started) * 1000,
            extra={"path": self.value, "url": url},
        )

    def _log_download_error(self, logger: logging.Logger, url: str, exc: Exception) -> None:
        log_event(
            logger,
            level=logging.ERROR,
            action="download.error",
            message=f"Download of {url} failed",
            extra={"path": self.value, "url": url, "error": repr(exc)},
        )

    # -- typed I/O ----------------------------------------------------------
    def open(self, mode: OpenMode = OpenMode.READ, encoding: str | None = None) -> IO[Any]:
        """Open the file; binary unless *encoding* is given."""

        fd = os.open(self.value, mode.flags, FILE_MODE)
        if encoding is None:
            return os.fdopen(fd, mode.file_mode)
        return os.fdopen(fd, mode.file_mode.replace("b", ""), encoding=encoding)

    def read_bytes(self, *, strict: bool = False) -> bytes | None:
        try:
            with self.open(OpenMode.READ) as handle:
                return handle.read()
        except OSError:
            if strict:
                raise
            return None

    def write_bytes(self, data: bytes) -> None:
        with self.open(OpenMode.NEW_WRITE) as handle:
            handle.write(data)

    def read_text(self, encoding: str = "utf-8") -> str:
        content = self.read_bytes()
        if content is None:
            return ""
        return content.decode(encoding, errors="replace")

    def write_text(self, text: str, encoding: str = "utf-8") -> None:
        self.write_bytes(text.encode(encoding))

    def read_json(self) -> Any:
        """Decode the whole file as JSON; None when unreadable or invalid."""

        content = self.read_bytes()
        if content is None:
            return None
        try:
            return json.loads(content)
        except ValueError:
            return None

    def read_json_map(self) -> dict[str, Any]:
        content = self.read_json()
        return content if isinstance(content, dict) else {}

    def write_json(self, content: Any) -> None:
        self.write_bytes(json.dumps(content).encode("utf-8"))

    def read_kv(
        self,
        sep: str | None = None,
        *,
        options: KVOptions | None = None,
        env: MutableMapping[str, str] | None = None,
    ) -> ValueMap:
        """Parse the file as ``key<sep>value`` lines; empty map if unreadable."""

        from .value import ValueMap, load_value_map

        options = options or KVOptions()
        try:
            handle = self.open(OpenMode.READ)
        except OSError:
            return ValueMap()
        with handle:
            return load_value_map(
                handle,
                sep if sep is not None else options.separator,
                unquote=options.unquote,
                expand_vars=options.expand_vars,
                set_env=options.set_env,
                env=env,
            )

    def lock(self) -> BinaryIO:
        """Create the file and hold an exclusive advisory lock on it."""

        from .lock import lock_file

        return lock_file(self.value)


__all__ = [
    "LIST_SEPARATOR",
    "SEPARATOR",
    "OpenMode",
    "Path",
    "cwd",
    "expand",
    "from_url",
    "join",
    "pretty_size",
]
