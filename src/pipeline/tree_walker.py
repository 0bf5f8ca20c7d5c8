"""
Traversal helpers for the untyped nested arrays Google Maps returns.

Every decoded payload node falls into one of four kinds: a string, a number,
a sequence of further nodes, or anything else (null, booleans, objects).
Extractors only ever look at strings, numbers and sequences.
"""

from enum import Enum
from typing import Any, Callable, Iterator


class NodeKind(Enum):
    STRING = "string"
    NUMBER = "number"
    SEQUENCE = "sequence"
    OTHER = "other"


def node_kind(value: Any) -> NodeKind:
    if isinstance(value, str):
        return NodeKind.STRING
    # bool is an int subclass but never a meaningful leaf here.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return NodeKind.NUMBER
    if isinstance(value, (list, tuple)):
        return NodeKind.SEQUENCE
    return NodeKind.OTHER


def _iter_nodes(node: Any) -> Iterator[tuple[NodeKind, Any]]:
    visited: set[int] = set()
    stack: list[Any] = [node]

    while stack:
        current = stack.pop()
        kind = node_kind(current)
        if kind is NodeKind.SEQUENCE:
            if id(current) in visited:
                continue
            visited.add(id(current))
            yield kind, current
            stack.extend(reversed(current))
        elif kind is not NodeKind.OTHER:
            yield kind, current


def iter_leaves(node: Any) -> Iterator[str | int | float]:
    """Yield string and number leaves depth-first, in document order.

    A sequence reachable through several parents is expanded only once per
    call, so shared or cyclic structures terminate.
    """
    for kind, value in _iter_nodes(node):
        if kind is not NodeKind.SEQUENCE:
            yield value


def iter_strings(node: Any) -> Iterator[str]:
    for leaf in iter_leaves(node):
        if isinstance(leaf, str):
            yield leaf


def iter_numbers(node: Any) -> Iterator[int | float]:
    for leaf in iter_leaves(node):
        if not isinstance(leaf, str):
            yield leaf


def iter_sequences(node: Any) -> Iterator[list | tuple]:
    for kind, value in _iter_nodes(node):
        if kind is NodeKind.SEQUENCE:
            yield value


def walk(
    node: Any,
    on_string: Callable[[str], None] | None = None,
    on_number: Callable[[int | float], None] | None = None,
) -> None:
    for leaf in iter_leaves(node):
        if isinstance(leaf, str):
            if on_string is not None:
                on_string(leaf)
        elif on_number is not None:
            on_number(leaf)


def safe_get(obj: Any, *indices, default=None) -> Any:
    """Safely traverse nested structures"""
    current = obj
    for idx in indices:
        if node_kind(current) is not NodeKind.SEQUENCE or not isinstance(idx, int):
            return default
        if not -len(current) <= idx < len(current):
            return default
        current = current[idx]
    return current
