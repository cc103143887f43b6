"""Symbol model: extracted code elements, extraction queries, references.

Lines are 1-based and inclusive throughout. A symbol's identity across
versions of a file is the ``(name, kind)`` pair.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from codelineage.core.errors import InvalidQueryError


class SymbolKind(StrEnum):
    """Kinds of code elements the extractor produces (wire names)."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    CONSTANT = "constant"
    GLOBAL = "global"
    EXPORT = "export"
    INTERFACE = "interface"
    FIELD = "field"
    CONSTRUCTOR = "constructor"


class UsageKind(StrEnum):
    """How a reference uses its target."""

    CALL = "call"
    INSTANTIATION = "instantiation"
    IMPORT = "import"
    INHERITANCE = "inheritance"
    REFERENCE = "reference"


class ScopeFilter(StrEnum):
    NONE = "none"
    TOP_LEVEL = "top-level"


Identity = tuple[str, SymbolKind]


@dataclass(frozen=True, slots=True)
class Symbol:
    """A named code element with a line span."""

    name: str
    kind: SymbolKind
    start_line: int
    end_line: int
    language: str = ""
    parent: str | None = None  # Enclosing class, for methods
    extends: str | None = None  # Base class, for classes

    @property
    def identity(self) -> Identity:
        return (self.name, self.kind)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def qualified_name(self) -> str:
        if self.parent and not self.name.startswith(f"{self.parent}."):
            return f"{self.parent}.{self.name}"
        return self.name

    def contains(self, other: Symbol) -> bool:
        """True if ``other``'s span lies within this symbol's span."""
        return self.start_line <= other.start_line and other.end_line <= self.end_line

    def segment(self, source: str) -> str:
        """Return the source lines covered by this symbol."""
        lines = source.splitlines()
        return "\n".join(lines[self.start_line - 1 : self.end_line])

    def with_name(self, name: str) -> Symbol:
        return dataclasses.replace(self, name=name)


_TRIVIAL_NAMES = frozenset({"i", "j", "k", "idx", "index", "temp", "tmp"})
_SINGLE_LOWER = re.compile(r"^[a-z]$")


def is_trivial_constant(name: str) -> bool:
    """Names never reported as constants (loop counters, scratch, private)."""
    if _SINGLE_LOWER.match(name):
        return True
    if name.lower() in _TRIVIAL_NAMES:
        return True
    if name.startswith("_"):
        return True
    return len(name) <= 2 and name != name.upper()


def _parse_kinds(values: Any, key: str) -> frozenset[SymbolKind]:
    if values is None:
        return frozenset()
    if isinstance(values, str) or not isinstance(values, Iterable):
        raise InvalidQueryError.bad_payload(f"{key} must be a list of element names")
    kinds: set[SymbolKind] = set()
    for value in values:
        try:
            kinds.add(SymbolKind(str(value).lower()))
        except ValueError:
            raise InvalidQueryError.unknown_element(str(value)) from None
    return frozenset(kinds)


@dataclass(frozen=True, slots=True)
class ExtractionQuery:
    """Which symbols an extraction run should return.

    Empty ``kinds`` means every kind. Filters combine with AND.
    """

    kinds: frozenset[SymbolKind] = field(default_factory=frozenset)
    exclusions: frozenset[SymbolKind] = field(default_factory=frozenset)
    name_filter: str | None = None
    class_filter: str | None = None
    extends_filter: str | None = None
    scope: ScopeFilter = ScopeFilter.NONE
    preserve_context: bool = False

    def matches(self, symbol: Symbol) -> bool:
        """Apply the kind, exclusion, name, class and extends filters."""
        if self.kinds and symbol.kind not in self.kinds:
            return False
        if symbol.kind in self.exclusions:
            return False
        if self.name_filter is not None:
            if symbol.kind is SymbolKind.METHOD:
                bare = symbol.name.rsplit(".", 1)[-1]
                if self.name_filter not in (bare, symbol.name, symbol.qualified_name):
                    return False
            elif symbol.name != self.name_filter:
                return False
        if self.class_filter is not None and symbol.name != self.class_filter:
            return False
        if self.extends_filter is not None and symbol.extends != self.extends_filter:
            return False
        if self.scope is ScopeFilter.TOP_LEVEL:
            return symbol.kind is not SymbolKind.METHOD and symbol.parent is None
        return True

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any] | None) -> ExtractionQuery:
        """Build a query from the JSON wire shape.

        ``{"Elements": [...], "Exclusions": [...], "Filters": {"FunctionName":
        ..., "ClassName": ..., "Extends": ...}, "ScopeFilter": "top-level",
        "PreserveContext": true}``; every key is optional.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise InvalidQueryError.bad_payload("query must be a JSON object")

        filters = payload.get("Filters") or {}
        if not isinstance(filters, Mapping):
            raise InvalidQueryError.bad_payload("Filters must be an object")

        scope_value = payload.get("ScopeFilter")
        if scope_value in (None, "", ScopeFilter.NONE.value):
            scope = ScopeFilter.NONE
        elif scope_value == ScopeFilter.TOP_LEVEL.value:
            scope = ScopeFilter.TOP_LEVEL
        else:
            raise InvalidQueryError.bad_payload(f"unknown ScopeFilter: {scope_value}")

        return cls(
            kinds=_parse_kinds(payload.get("Elements"), "Elements"),
            exclusions=_parse_kinds(payload.get("Exclusions"), "Exclusions"),
            name_filter=filters.get("FunctionName") or None,
            class_filter=filters.get("ClassName") or None,
            extends_filter=filters.get("Extends") or None,
            scope=scope,
            preserve_context=bool(payload.get("PreserveContext", False)),
        )

    def to_wire(self) -> dict[str, Any]:
        filters: dict[str, str] = {}
        if self.name_filter is not None:
            filters["FunctionName"] = self.name_filter
        if self.class_filter is not None:
            filters["ClassName"] = self.class_filter
        if self.extends_filter is not None:
            filters["Extends"] = self.extends_filter
        return {
            "Elements": sorted(k.value for k in self.kinds),
            "Exclusions": sorted(k.value for k in self.exclusions),
            "Filters": filters,
            "ScopeFilter": self.scope.value if self.scope is ScopeFilter.TOP_LEVEL else None,
            "PreserveContext": self.preserve_context,
        }


@dataclass(frozen=True, slots=True)
class Reference:
    """One use of a target symbol."""

    symbol: str
    line: int
    usage: UsageKind
    context: str | None = None  # Enclosing function/method, None at module level
    path: str | None = None  # Set by the project-wide search
