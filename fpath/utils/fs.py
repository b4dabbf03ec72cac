"""Lexical path and string helpers used by fpath.

Nothing in this module touches the filesystem.
"""
from __future__ import annotations

import ast
import fnmatch
import os
import re
from typing import Callable

_SEPS = os.sep + (os.altsep or "")
_QUOTES = "\"'`"
_VAR_RE = re.compile(r"\$(?:\{(?P<braced>[^}]*)\}|(?P<name>[A-Za-z0-9_]+))")


def clean(path: str) -> str:
    """Collapse ``.``, ``..`` and repeated separators in *path*.

    An empty path cleans to ``"."``; ``..`` above the root is dropped.
    """

    cleaned = os.path.normpath(path)
    # POSIX normpath keeps exactly two leading slashes.
    if os.sep == "/" and cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def join(*elements: str) -> str:
    """Join the non-empty *elements* and clean the result.

    Unlike :func:`os.path.join`, an absolute element does not discard the
    elements before it. Joining only empty strings returns ``""``.
    """

    parts = [element for element in elements if element]
    if not parts:
        return ""
    return clean(os.sep.join(parts))


def dirname(path: str) -> str:
    """Return the directory containing *path*, ignoring trailing separators."""

    stripped = path.rstrip(_SEPS)
    if not stripped:
        return os.sep if path else "."
    parent = os.path.dirname(stripped)
    return clean(parent) if parent else "."


def basename(path: str) -> str:
    """Return the last element of *path*, ignoring trailing separators."""

    if not path:
        return "."
    stripped = path.rstrip(_SEPS)
    if not stripped:
        return os.sep
    return os.path.basename(stripped)


def match(pattern: str, name: str) -> bool:
    """Shell-glob match of the whole *name*; wildcards never cross a separator."""

    pattern_parts = pattern.split(os.sep)
    name_parts = name.split(os.sep)
    if len(pattern_parts) != len(name_parts):
        return False
    return all(
        fnmatch.fnmatchcase(part, part_pattern)
        for part_pattern, part in zip(pattern_parts, name_parts)
    )


def expand_vars(template: str, lookup: Callable[[str], str | None]) -> str:
    """Replace ``${NAME}`` and ``$NAME`` tokens using *lookup*.

    Names that *lookup* cannot resolve expand to the empty string. A ``$``
    that is not followed by a name is left alone.
    """

    def _replace(found: re.Match[str]) -> str:
        name = found.group("braced")
        if name is None:
            name = found.group("name")
        value = lookup(name)
        return value if value is not None else ""

    return _VAR_RE.sub(_replace, template)


def _closes_early(inner: str, quote: str) -> bool:
    """True if *inner* holds an unescaped *quote*, as in ``"a" "b"``."""

    escaped = False
    for char in inner:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == quote:
            return True
    return False


def unquote(text: str) -> str | None:
    """Interpret *text* as a quoted string literal.

    Double and single quotes honour the usual backslash escapes, backquotes
    are raw. Returns ``None`` when *text* is not a single valid literal.
    """

    if len(text) < 2 or text[0] != text[-1] or text[0] not in _QUOTES:
        return None

    quote = text[0]
    inner = text[1:-1]
    if quote == "`":
        return None if "`" in inner else inner
    if _closes_early(inner, quote):
        return None

    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, str) else None


__all__ = ["basename", "clean", "dirname", "expand_vars", "join", "match", "unquote"]
