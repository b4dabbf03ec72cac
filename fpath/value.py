"""Typed configuration values and the ``key<sep>value`` loader."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, MutableMapping

from .logger import get_logger, log_event
from .path import Path
from .utils import fs

LOGGER_NAME = "value"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)
_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@dataclass(frozen=True, slots=True)
class Value:
    """Immutable string with failure-tolerant decoders.

    ``int``, ``float`` and ``bool`` return the type's zero value when the text
    does not parse; pass ``strict=True`` to get a :class:`ValueError` instead.
    """

    text: str = ""

    def __str__(self) -> str:
        return self.text

    def int(self, *, strict: bool = False) -> int:
        if _INT_RE.fullmatch(self.text):
            return int(self.text)
        if strict:
            raise ValueError(f"invalid integer: {self.text!r}")
        return 0

    def float(self, *, strict: bool = False) -> float:
        # Decimal or exponent form, or inf/infinity/nan; no blanks or underscores.
        if _FLOAT_RE.fullmatch(self.text):
            return float(self.text)
        if strict:
            raise ValueError(f"invalid float: {self.text!r}")
        return 0.0

    def bool(self, *, strict: bool = False) -> bool:
        if self.text in _TRUE:
            return True
        if self.text in _FALSE or not strict:
            return False
        raise ValueError(f"invalid boolean: {self.text!r}")

    def path(self) -> Path:
        return Path(self.text)

    def array(self, sep: str) -> List[Value]:
        """Split on the literal *sep*.

        An empty value gives ``[]`` and a trailing separator does not add an
        empty last element.
        """

        if not self.text:
            return []
        if not sep:
            return [self]
        parts = self.text.split(sep)
        if parts[-1] == "":
            parts.pop()
        return [Value(part) for part in parts]


class ValueMap(Dict[str, Value]):
    """Mapping produced by :func:`load_value_map`.

    ``get`` returns None for a missing key, which is distinct from a present
    but empty ``Value("")``.
    """

    def strings(self) -> dict[str, str]:
        return {key: value.text for key, value in self.items()}


def _iter_lines(stream: Iterable[str | bytes]) -> Iterable[str]:
    for raw in stream:
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        line = line.rstrip("\n")
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def _export(environment: MutableMapping[str, str], key: str, value: str) -> None:
    try:
        environment[key] = value
    except (ValueError, OSError) as exc:
        # e.g. "A=B" as a name, or a NUL byte; the pair is still loaded
        log_event(
            get_logger(LOGGER_NAME),
            level=logging.WARNING,
            action="kv.env_error",
            message=f"Cannot export {key!r} to the environment",
            extra={"key": key, "error": repr(exc)},
        )


def load_value_map(
    stream: Iterable[str | bytes],
    sep: str = "=",
    *,
    unquote: bool = False,
    expand_vars: bool = False,
    set_env: bool = False,
    env: MutableMapping[str, str] | None = None,
) -> ValueMap:
    """Parse ``key<sep>value`` lines from *stream* into a :class:`ValueMap`.

    Lines shorter than three characters, lines starting with ``#`` or ``//``
    and lines without *sep* are skipped; nothing here raises for malformed
    input. Keys and values are stripped. With *unquote*, quoted literals are
    decoded. With *expand_vars*, ``${NAME}``/``$NAME`` resolve against keys
    already loaded, then *env*. With *set_env*, every pair is written into
    *env*; a pair the environment rejects is logged and still loaded. *env*
    defaults to :data:`os.environ`, so exports are process-wide
    and unsynchronised unless a separate mapping is passed.
    """

    environment: MutableMapping[str, str] = os.environ if env is None else env
    values = ValueMap()

    def _lookup(name: str) -> str | None:
        found = values.get(name)
        if found is not None:
            return found.text
        return environment.get(name)

    for line in _iter_lines(stream):
        if len(line) < 3 or line.startswith(("#", "//")):
            continue

        index = line.find(sep) if sep else -1
        if index < 0:
            continue

        key = line[:index].strip()
        value = line[index + len(sep):].strip()

        if unquote:
            decoded = fs.unquote(value)
            if decoded is not None:
                value = decoded

        if expand_vars:
            value = fs.expand_vars(value, _lookup)

        if set_env and key:
            _export(environment, key, value)

        values[key] = Value(value)

    return values


__all__ = ["Value", "ValueMap", "load_value_map"]
