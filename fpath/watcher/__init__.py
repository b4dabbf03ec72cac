"""Watcher subsystem for fpath."""
from .dispatch import Dispatcher
from .types import Action, ChangeEvent, Handler
from .watch import Watcher, watch

__all__ = [
    "Action",
    "ChangeEvent",
    "Dispatcher",
    "Handler",
    "Watcher",
    "watch",
]
