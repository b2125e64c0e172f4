"""Dot-path helpers for nested locale documents.

A locale document is a nested dict. Any value that is not a dict is a leaf,
including lists, which are never recursed into.
"""

import json
from typing import Any, Dict, Iterator, List, Tuple

LocaleDocument = Dict[str, Any]
FlatKeyMap = Dict[str, str]

SEPARATOR = "."


class _Missing:
    """Marker for a path that does not resolve to a value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def is_container(node: Any) -> bool:
    """Return True if ``node`` is recursed into during traversal."""
    return isinstance(node, dict)


def coerce_leaf(value: Any) -> str:
    """Convert a leaf value to the string form stored in flat maps.

    Booleans and null use their JSON spelling, lists are compact JSON,
    everything else goes through ``str``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, list):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _join(prefix: str, key: str) -> str:
    return f"{prefix}{SEPARATOR}{key}" if prefix else key


def iter_leaves(doc: LocaleDocument, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Yield ``(path, raw_value)`` for every leaf, depth-first in insertion order."""
    for key, value in doc.items():
        full_key = _join(prefix, key)
        if is_container(value):
            yield from iter_leaves(value, full_key)
        else:
            yield full_key, value


def flatten(doc: LocaleDocument) -> FlatKeyMap:
    """Flatten a nested document into ``{dot.path: string value}``."""
    return {path: coerce_leaf(value) for path, value in iter_leaves(doc)}


def get_all_keys(doc: LocaleDocument) -> List[str]:
    """Return every leaf path of ``doc`` in traversal order."""
    return [path for path, _ in iter_leaves(doc)]


def get_value(doc: LocaleDocument, path: str) -> Any:
    """Resolve a dot-path.

    Args:
        doc: Document to read from
        path: Dot-separated path, e.g. ``"app.title"``

    Returns:
        The stored value (which may be ``None``), or ``MISSING`` if any
        segment is absent or an intermediate node is not a container.
    """
    current: Any = doc
    for segment in path.split(SEPARATOR):
        if not is_container(current) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def set_value(doc: LocaleDocument, path: str, value: Any) -> None:
    """Set ``value`` at ``path``, creating intermediate containers as needed.

    A non-container value found at an intermediate segment is replaced by
    an empty container.
    """
    *parents, last = path.split(SEPARATOR)
    current = doc
    for segment in parents:
        if not is_container(current.get(segment)):
            current[segment] = {}
        current = current[segment]
    current[last] = value


def unflatten(flat: Dict[str, Any]) -> LocaleDocument:
    """Build a nested document from ``{dot.path: value}`` pairs."""
    doc: LocaleDocument = {}
    for path, value in flat.items():
        set_value(doc, path, value)
    return doc
