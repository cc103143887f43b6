"""Symbol extraction over tree-sitter trees.

``SymbolExtractor`` walks a tree once, dispatching on node type through a
per-language ``handlers`` table. The raw symbols then go through
``postprocess``: ordering, overlap removal and query filtering.

Usage::

    extractor = get_extractor("python")
    symbols = extractor.extract(result.tree, ExtractionQuery(kinds={SymbolKind.CLASS}))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, ClassVar

from codelineage.symbols.models import (
    ExtractionQuery,
    Symbol,
    SymbolKind,
    is_trivial_constant,
)
from codelineage.symbols.walk import Visit, end_line, start_line, walk

Handler = Callable[[Visit], Iterable[Symbol]]

# Kinds kept even when another symbol's span contains them
_NESTABLE = frozenset({SymbolKind.METHOD, SymbolKind.EXPORT})
_MEMBER_KINDS = frozenset({SymbolKind.FIELD, SymbolKind.CONSTRUCTOR, SymbolKind.CONSTANT})


class SymbolExtractor:
    """Base class for per-language extractors.

    Subclasses set ``language`` and implement ``_build_handlers`` returning a
    mapping of tree-sitter node type to a bound method. A handler receives
    the visit (node plus ancestors) and yields zero or more symbols.
    """

    language: ClassVar[str] = ""

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = self._build_handlers()

    def _build_handlers(self) -> dict[str, Handler]:
        raise NotImplementedError

    def collect(self, root: Any) -> list[Symbol]:
        """All raw symbols in document order, before post-processing."""
        found: list[Symbol] = []
        for visit in walk(root):
            handler = self.handlers.get(visit.node.type)
            if handler is not None:
                found.extend(handler(visit))
        return found

    def extract(self, tree: Any, query: ExtractionQuery | None = None) -> list[Symbol]:
        """Extract symbols from a tree (or root node) and apply ``query``."""
        root = getattr(tree, "root_node", tree)
        return postprocess(self.collect(root), query or ExtractionQuery())

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def symbol(
        self,
        node: Any,
        name: str,
        kind: SymbolKind,
        *,
        parent: str | None = None,
        extends: str | None = None,
    ) -> Symbol:
        return Symbol(
            name=name,
            kind=kind,
            start_line=start_line(node),
            end_line=end_line(node),
            language=self.language,
            parent=parent or None,
            extends=extends or None,
        )

    def constant(self, node: Any, name: str, parent: str | None = None) -> Iterator[Symbol]:
        """Yield a Constant unless the name is a trivial one."""
        if name and not is_trivial_constant(name):
            yield self.symbol(node, name, SymbolKind.CONSTANT, parent=parent)


def _sort_key(symbol: Symbol) -> tuple[int, bool]:
    # Exports follow the declaration they wrap on the same line
    return (symbol.start_line, symbol.kind is SymbolKind.EXPORT)


def _survives_containment(symbol: Symbol) -> bool:
    # Type members (C# fields, constructors, constants) carry their owner as parent
    return symbol.kind in _NESTABLE or (
        symbol.kind in _MEMBER_KINDS and symbol.parent is not None
    )


def remove_overlaps(symbols: list[Symbol]) -> list[Symbol]:
    """Drop symbols contained in an earlier symbol's span.

    Methods, exports and type members survive containment. ``symbols`` must
    already be sorted with ``_sort_key``.
    """
    kept: list[Symbol] = []
    for index, symbol in enumerate(symbols):
        if not _survives_containment(symbol) and any(
            other.contains(symbol) for other in symbols[:index]
        ):
            continue
        kept.append(symbol)
    return kept


def postprocess(symbols: Iterable[Symbol], query: ExtractionQuery) -> list[Symbol]:
    """Order, de-overlap, then filter raw symbols by ``query``.

    Overlap removal sees every extracted symbol, so a filtered extraction
    equals the unfiltered one passed through the query.
    """
    ordered = sorted(symbols, key=_sort_key)
    result = [s for s in remove_overlaps(ordered) if query.matches(s)]
    if query.preserve_context:
        result = [
            s.with_name(s.qualified_name) if s.kind is SymbolKind.METHOD and s.parent else s
            for s in result
        ]
    return result
