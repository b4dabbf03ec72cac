"""Shared type definitions for the watcher subsystem."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from ..path import Path


class Action(str, Enum):
    """Names of the filesystem changes a handler can be told about."""

    CREATE = "CREATE"
    WRITE = "WRITE"
    REMOVE = "REMOVE"
    RENAME = "RENAME"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single change reported by the notification backend."""

    path: str
    action: Action
    timestamp: float = field(default_factory=time.time)


# Return a truthy value to let later matching handlers see the same event.
Handler = Callable[[Action, Path], bool]


__all__ = ["Action", "ChangeEvent", "Handler"]
