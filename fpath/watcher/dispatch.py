"""Match change events against glob patterns and call their handlers."""
from __future__ import annotations

import logging
from typing import Mapping

from ..logger import get_logger, log_event
from ..path import Path
from ..utils import fs
from .types import ChangeEvent, Handler

LOGGER_NAME = "watcher"


class Dispatcher:
    """Route :class:`ChangeEvent` objects to handlers keyed by glob pattern.

    Patterns are matched against the event path's base name, in registration
    order. An event is dropped when its path was dispatched before and the
    file's modification time has not changed since; events for paths that
    can no longer be stat'ed (e.g. deleted files) are always dispatched.

    The modification-time table is private to whichever single thread calls
    :meth:`dispatch` and only ever grows.
    """

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.handlers: list[tuple[str, Handler]] = list(handlers.items())
        self.logger = logger or get_logger(LOGGER_NAME)
        self._mtimes: dict[str, int] = {}

    def dispatch(self, event: ChangeEvent) -> int:
        """Handle one event and return how many handlers were called."""

        name = fs.basename(event.path)
        matching = [
            (pattern, handler)
            for pattern, handler in self.handlers
            if fs.match(pattern, name)
        ]
        if not matching:
            return 0

        target = Path(event.path)
        stat_result = target.stat()
        # Checked once per event, not per matching pattern, so a second
        # pattern matching the same file still sees the change.
        if stat_result is not None:
            last_mtime = self._mtimes.get(event.path)
            if last_mtime == stat_result.st_mtime_ns:
                return 0
            self._mtimes[event.path] = stat_result.st_mtime_ns

        calls = 0
        for pattern, handler in matching:
            calls += 1
            try:
                keep_going = handler(event.action, target)
            except Exception as exc:
                log_event(
                    self.logger,
                    level=logging.ERROR,
                    action="watch.handler_error",
                    message=f"Handler for {pattern!r} raised on {event.path}",
                    extra={"path": event.path, "pattern": pattern, "error": repr(exc)},
                )
                break
            if not keep_going:
                break
        return calls


__all__ = ["Dispatcher"]
