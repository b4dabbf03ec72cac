"""Filesystem watcher that feeds change notifications to pattern handlers."""
from __future__ import annotations

import logging
import os
import threading
from queue import Empty, Queue
from typing import Any, Callable, Mapping

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import WatchOptions
from ..errors import WatchError
from ..logger import get_logger, log_event
from ..path import Path
from .dispatch import LOGGER_NAME, Dispatcher
from .types import Action, ChangeEvent, Handler

_WATCHDOG_ACTIONS = {
    "created": Action.CREATE,
    "modified": Action.WRITE,  # attribute changes arrive as modified too
    "deleted": Action.REMOVE,
    "moved": Action.RENAME,
}


class _WatcherBackend:
    """Base protocol for change-notification backends."""

    def start(self) -> None:  # pragma: no cover - exercised in integration
        raise NotImplementedError

    def stop(self) -> None:  # pragma: no cover - exercised in integration
        raise NotImplementedError

    def failure(self) -> BaseException | None:
        """Return an error, once, if notifications stopped without :meth:`stop`."""

        return None


class _EventBridge(FileSystemEventHandler):
    """Translate watchdog events into :class:`ChangeEvent` objects."""

    def __init__(self, watcher: "Watcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        action = _WATCHDOG_ACTIONS.get(event.event_type)
        if action is None:
            return
        self._watcher.enqueue(os.fsdecode(event.src_path), action)
        # The new name of a moved file shows up as a creation.
        if action is Action.RENAME and getattr(event, "dest_path", None):
            self._watcher.enqueue(os.fsdecode(event.dest_path), Action.CREATE)


class _WatchdogBackend(_WatcherBackend):
    """Native notifications (inotify, FSEvents, ...) through ``watchdog``."""

    def __init__(self, watcher: "Watcher") -> None:
        self._watcher = watcher
        self._observer = Observer()
        self._stopping = False
        self._reported = False

    def start(self) -> None:
        self._observer.schedule(
            _EventBridge(self._watcher),
            str(self._watcher.root),
            recursive=self._watcher.options.recursive,
        )
        self._observer.start()

    def stop(self) -> None:
        self._stopping = True
        self._observer.stop()
        self._observer.join()

    def failure(self) -> BaseException | None:
        if self._stopping or self._reported:
            return None
        # An emitter thread exits when its reader fails or the root disappears.
        alive = self._observer.is_alive() and all(
            emitter.is_alive() for emitter in self._observer.emitters
        )
        if alive:
            return None
        self._reported = True
        return WatchError(f"Change notifications for {self._watcher.root} stopped")


class Watcher:
    """Watch a directory tree and dispatch changes to glob-pattern handlers.

    Events are processed one at a time, in arrival order, on a single
    background thread that lives until :meth:`close`.

    Example::

        def on_css(action, path):
            print(action, path)
            return True

        with watch({"*.css": on_css}, "static"):
            ...
    """

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        root: str | os.PathLike[str] = ".",
        *,
        options: WatchOptions | None = None,
        backend_factory: Callable[["Watcher"], _WatcherBackend | None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.root = Path(os.fspath(root))
        self.options = options or WatchOptions()
        self.logger = logger or get_logger(LOGGER_NAME)
        self.dispatcher = Dispatcher(handlers, logger=self.logger)
        self._backend_factory = backend_factory or _WatchdogBackend
        self._queue: Queue[Any] = Queue()
        self._stop_event = threading.Event()
        self._worker: threading.Thread | None = None
        self._backend: _WatcherBackend | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "Watcher":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> "Watcher":
        """Acquire the notification subscription and start the loop.

        Raises :class:`WatchError` when the subscription cannot be acquired.
        """

        with self._lock:
            if self.running:
                return self

            try:
                backend = self._backend_factory(self)
                if backend is not None:
                    backend.start()
            except Exception as exc:
                log_event(
                    self.logger,
                    level=logging.ERROR,
                    action="watch.error",
                    message=f"Cannot watch {self.root}",
                    extra={"path": str(self.root), "error": repr(exc)},
                )
                raise WatchError(f"Cannot watch {self.root}: {exc}") from exc

            self._backend = backend
            self._stop_event.clear()
            self._worker = threading.Thread(target=self._run, name="fpath-watcher", daemon=True)
            self._worker.start()

            log_event(
                self.logger,
                level=logging.INFO,
                action="watch.start",
                message=f"Watching {self.root}",
                extra={
                    "path": str(self.root),
                    "patterns": [pattern for pattern, _ in self.dispatcher.handlers],
                },
            )
        return self

    def close(self) -> None:
        """Stop the subscription and the loop; events already queued are handled first."""

        with self._lock:
            backend, self._backend = self._backend, None
            try:
                if backend is not None:
                    backend.stop()
            finally:
                worker, self._worker = self._worker, None
                if worker is not None and worker.is_alive():
                    self._stop_event.set()
                    self._queue.put(_Sentinel)
                    worker.join()
                    log_event(
                        self.logger,
                        level=logging.INFO,
                        action="watch.stop",
                        message=f"Stopped watching {self.root}",
                        extra={"path": str(self.root)},
                    )

    def publish(self, event: ChangeEvent) -> None:
        """Submit *event* for dispatch."""

        self._queue.put(event)

    def publish_error(self, error: BaseException) -> None:
        """Report a backend error; the loop logs it and carries on."""

        self._queue.put(error)

    def enqueue(self, path: str | os.PathLike[str], action: Action | str) -> None:
        """Helper for tests and manual injection."""

        self.publish(ChangeEvent(path=os.fspath(path), action=Action(action)))

    def _check_backend(self) -> None:
        backend = self._backend
        if backend is None:
            return
        error = backend.failure()
        if error is not None:
            self.publish_error(error)

    def _run(self) -> None:
        while True:
            try:
                item = self._queue.get(timeout=self.options.poll_interval)
            except Empty:
                if self._stop_event.is_set():
                    break
                self._check_backend()
                continue

            if item is _Sentinel:
                break
            if isinstance(item, BaseException):
                log_event(
                    self.logger,
                    level=logging.WARNING,
                    action="watch.error",
                    message="Change notification error",
                    extra={"path": str(self.root), "error": repr(item)},
                )
                continue

            try:
                self.dispatcher.dispatch(item)
            except Exception as exc:  # pragma: no cover
                log_event(
                    self.logger,
                    level=logging.ERROR,
                    action="watch.error",
                    message=f"Failed to dispatch {item.path}",
                    extra={"path": item.path, "error": repr(exc)},
                )


def watch(
    handlers: Mapping[str, Handler],
    root: str | os.PathLike[str] = ".",
    **kwargs: Any,
) -> Watcher:
    """Create a :class:`Watcher` for *root* and start it."""

    return Watcher(handlers, root, **kwargs).start()


_Sentinel = object()


__all__ = ["Watcher", "watch"]
