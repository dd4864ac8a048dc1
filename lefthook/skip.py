"""Deciding whether a hook, command or script is skipped in the current git state."""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from .repository import State


def do_skip(state: State, skip: Any, only: Any) -> bool:
    """Return True if the entry must be skipped for the given git state."""
    if skip is not None and matches(state, skip):
        return True

    if only is not None:
        return not matches(state, only)

    return False


def matches(state: State, value: Any) -> bool:
    """Return True if a skip/only value applies to the given git state.

    A boolean applies as is, a string names a step (merge, rebase), and a
    list holds steps and ``{"ref": <branch or glob>}`` entries.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value == state.step
    if isinstance(value, (list, tuple)):
        return any(_item_matches(state, item) for item in value)
    return False


def _item_matches(state: State, item: Any) -> bool:
    if isinstance(item, str):
        return item == state.step
    if isinstance(item, Mapping):
        ref = item.get("ref")
        if not isinstance(ref, str):
            raise TypeError(f"'ref' must be a string, got {type(ref).__name__}")
        if ref == state.branch:
            return True
        return _compile_glob(ref).fullmatch(state.branch) is not None
    return False


def _class_pattern(content: str) -> str:
    negate = content.startswith("!")
    if negate:
        content = content[1:]
    if not content:
        raise ValueError("empty character class in glob")
    body = "".join(ch if ch == "-" else re.escape(ch) for ch in content)
    return f"[{'^' if negate else ''}{body}]"


@lru_cache(maxsize=None)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob with ``*``, ``?``, ``[...]``, ``[!...]`` and ``{a,b}``."""
    parts: list[str] = []
    depth = 0
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise ValueError(f"invalid glob {pattern!r}: trailing escape")
            parts.append(re.escape(escaped))
        elif ch == "*":
            if not parts or parts[-1] != ".*":
                parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            content = []
            for inner in chars:
                if inner == "]":
                    break
                content.append(inner)
            else:
                raise ValueError(f"invalid glob {pattern!r}: unclosed '['")
            parts.append(_class_pattern("".join(content)))
        elif ch == "{":
            depth += 1
            parts.append("(?:")
        elif ch == "," and depth:
            parts.append("|")
        elif ch == "}" and depth:
            depth -= 1
            parts.append(")")
        else:
            parts.append(re.escape(ch))

    if depth:
        raise ValueError(f"invalid glob {pattern!r}: unclosed '{{'")

    return re.compile("".join(parts), re.DOTALL)