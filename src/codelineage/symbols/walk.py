"""Ancestor-carrying pre-order walk over tree-sitter trees.

Each visited node comes with the immutable tuple of its ancestors, root
first. Iterative, so deeply nested files cannot exhaust the recursion limit.
"""

from __future__ import annotations

from collections.abc import Container, Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Visit:
    node: Any
    ancestors: tuple[Any, ...]

    def nearest(self, types: Container[str]) -> Any | None:
        """Closest enclosing ancestor whose type is in ``types``."""
        return nearest(self.ancestors, types)

    def inside(self, types: Container[str]) -> bool:
        return any(a.type in types for a in self.ancestors)


def walk(root: Any) -> Iterator[Visit]:
    """Yield every node in document order with its ancestor chain."""
    stack: list[tuple[Any, tuple[Any, ...]]] = [(root, ())]
    while stack:
        node, ancestors = stack.pop()
        yield Visit(node, ancestors)
        children = node.children
        if children:
            chain = (*ancestors, node)
            stack.extend((child, chain) for child in reversed(children))


def nearest(ancestors: tuple[Any, ...], types: Container[str]) -> Any | None:
    for ancestor in reversed(ancestors):
        if ancestor.type in types:
            return ancestor
    return None


def text(node: Any | None) -> str:
    """Decoded source text of a node ("" for None)."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def field_text(node: Any, field_name: str) -> str:
    return text(node.child_by_field_name(field_name))


def first_child_of_type(node: Any, *types: str) -> Any | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


def start_line(node: Any) -> int:
    """1-based first line of a node."""
    return int(node.start_point[0]) + 1


def end_line(node: Any) -> int:
    """1-based last line of a node.

    A node ending at column 0 stops on the previous line (trailing newline).
    """
    row, col = node.end_point
    if col == 0 and row > node.start_point[0]:
        return int(row)
    return int(row) + 1
