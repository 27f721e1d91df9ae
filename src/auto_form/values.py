"""
Value snapshot helpers: the MISSING sentinel and field paths.

A path addresses a value inside form data: "country" for a top-level
field, "contacts[1].type" for a child of the second item of an array
field. Compile-time paths use "[]" in place of an item index.
"""

import re
from collections.abc import Mapping
from typing import Any


class _Missing:
    """Sentinel for a value that is absent from the snapshot."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING: Any = _Missing()

PathSegment = str | int

_SEGMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)((?:\[\d*\])*)$")
_INDEX = re.compile(r"\[(\d*)\]")


def join_path(prefix: str, key: str, index: int | None = None) -> str:
    """Join a parent path and a key, optionally indexing into an array item."""
    path = f"{prefix}.{key}" if prefix else key
    if index is not None:
        path = f"{path}[{index}]"
    return path


def parse_path(path: str) -> list[PathSegment]:
    """
    Split a path into keys and item indices.

    >>> parse_path("contacts[2].email")
    ['contacts', 2, 'email']
    """
    if not path:
        raise ValueError("Path cannot be empty")
    segments: list[PathSegment] = []
    for part in path.split("."):
        match = _SEGMENT.match(part)
        if not match:
            raise ValueError(f"Invalid path segment {part!r} in {path!r}")
        segments.append(match.group(1))
        for index in _INDEX.findall(match.group(2)):
            if index == "":
                raise ValueError(f"Path {path!r} has no item index")
            segments.append(int(index))
    return segments


def field_keys(path: str) -> list[str]:
    """Keys along a path with item indices dropped ("contacts[0].type" -> contacts, type)."""
    return [_INDEX.sub("", part) for part in path.split(".")]


def path_ancestors(path: str) -> list[str]:
    """
    Enclosing paths, outermost first.

    >>> path_ancestors("contacts[1].email")
    ['contacts', 'contacts[1]']
    """
    return [path[:i] for i, ch in enumerate(path) if ch in ".["]


def item_template(path: str) -> str:
    """Compile-time form of a runtime path ("contacts[0].type" -> "contacts[].type")."""
    return _INDEX.sub("[]", path)


def get_path(values: Any, path: str, default: Any = MISSING) -> Any:
    """Read the value at a path, returning default when any step is absent."""
    current = values
    for segment in parse_path(path):
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                return default
        elif not isinstance(current, Mapping) or segment not in current:
            return default
        current = current[segment]
    return current


def _assign(container: Any, segments: list[PathSegment], value: Any, remove: bool) -> Any:
    head, rest = segments[0], segments[1:]
    if isinstance(head, int):
        if not isinstance(container, list):
            raise TypeError(f"Expected a list of items, got {type(container).__name__}")
        if head >= len(container):
            raise IndexError(f"Item index {head} out of range")
        updated = list(container)
    else:
        if container is MISSING or container is None:
            container = {}
        if not isinstance(container, Mapping):
            raise TypeError(f"Expected an object, got {type(container).__name__}")
        updated = dict(container)

    if rest:
        child = updated[head] if isinstance(head, int) else updated.get(head, MISSING)
        updated[head] = _assign(child, rest, value, remove)
    elif remove:
        if isinstance(head, int):
            del updated[head]
        else:
            updated.pop(head, None)
    else:
        updated[head] = value
    return updated


def set_path(values: Mapping[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Return a copy of values with the value at path replaced (copy on write)."""
    return _assign(values, parse_path(path), value, remove=False)


def remove_path(values: Mapping[str, Any], path: str) -> dict[str, Any]:
    """Return a copy of values without the value at path."""
    return _assign(values, parse_path(path), None, remove=True)


def is_empty(value: Any) -> bool:
    """True for values that do not satisfy a presence constraint."""
    if value is MISSING or value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False
