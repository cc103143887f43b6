"""Output payloads: JSON-ready dicts and plain-text renderings.

HTML rendering lives outside this package; everything here returns plain
``dict``/``list``/``str`` values for ``json.dumps`` or a terminal.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from codelineage.evolution.compositor import compose
from codelineage.evolution.diff import DiffOpKind
from codelineage.evolution.models import ChangeKind, CompressedView, LineDiff, VersionChain
from codelineage.ops import SymbolComparison
from codelineage.symbols.models import Reference, Symbol

MAX_SHADE = 9

_MARKS = {ChangeKind.ADD: "+", ChangeKind.DELETE: "-"}
_SIDE_MARKS = {
    DiffOpKind.UNCHANGED: " ",
    DiffOpKind.ADDED: ">",
    DiffOpKind.REMOVED: "<",
    DiffOpKind.MODIFIED: "|",
}


def shade(index: int, total: int) -> int:
    """Cosmetic 1..9 bucket for transition ``index`` out of ``total``."""
    if total <= 0:
        return 1
    return min(MAX_SHADE, 1 + index * MAX_SHADE // total)


# =============================================================================
# Symbols and references
# =============================================================================


def symbol_payload(symbol: Symbol, source: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": symbol.kind.value,
        "name": symbol.name,
        "startLine": symbol.start_line,
        "endLine": symbol.end_line,
    }
    if source is not None:
        payload["content"] = symbol.segment(source)
    if symbol.parent is not None:
        payload["parent"] = symbol.parent
    if symbol.extends is not None:
        payload["extends"] = symbol.extends
    payload["lineCount"] = symbol.line_count
    return payload


def symbols_payload(symbols: Iterable[Symbol], source: str | None = None) -> list[dict[str, Any]]:
    return [symbol_payload(s, source) for s in symbols]


def reference_payload(ref: Reference) -> dict[str, Any]:
    payload: dict[str, Any] = {"symbol": ref.symbol, "line": ref.line}
    if ref.context is not None:
        payload["context"] = ref.context
    payload["usage"] = ref.usage.value
    if ref.path is not None:
        payload["file"] = ref.path
    return payload


def references_payload(refs: Iterable[Reference]) -> list[dict[str, Any]]:
    return [reference_payload(r) for r in refs]


# =============================================================================
# Evolution
# =============================================================================


def _transition_payload(diff: LineDiff) -> dict[str, Any]:
    return {
        "from": diff.from_commit,
        "to": diff.to_commit,
        "changes": [
            {"kind": c.kind.value, "line": c.line, "content": c.content} for c in diff.changes
        ],
    }


def timeline_payload(chain: VersionChain) -> dict[str, Any]:
    """One chain, versions newest first, transitions chronological."""
    return {
        "symbol": chain.name,
        "type": chain.kind,
        "versions": [
            {
                "commit": v.snapshot.commit_id,
                "author": v.snapshot.author,
                "timestamp": v.snapshot.timestamp.isoformat(),
                "message": v.snapshot.message,
                "startLine": v.symbol.start_line,
                "endLine": v.symbol.end_line,
                "content": v.segment,
            }
            for v in chain.newest_first()
        ],
        "transitions": [_transition_payload(t) for t in chain.transitions],
    }


def compressed_payload(view: CompressedView) -> dict[str, Any]:
    total = view.transition_count
    return {
        "symbol": view.identity[0],
        "type": view.identity[1].value,
        "span": view.span,
        "finalLines": list(view.final_lines),
        "changes": {
            str(line): [
                {
                    "kind": c.kind.value,
                    "content": c.content,
                    "transition": c.transition,
                    "shade": shade(c.transition, total),
                }
                for c in entries
            ]
            for line, entries in view.changes_by_line.items()
        },
    }


def evolution_payload(chains: Iterable[VersionChain]) -> list[dict[str, Any]]:
    """Timeline plus compressed view for every chain."""
    out = []
    for chain in chains:
        entry = timeline_payload(chain)
        entry["compressed"] = compressed_payload(compose(chain))
        out.append(entry)
    return out


def compressed_lines(view: CompressedView) -> list[tuple[str, ChangeKind | None]]:
    """Text lines of a compressed view, each tagged with its change kind (None for content).

    Each final line is followed by the changes recorded at it; lines past the
    end of the final content show only their changes::

        L3  return a + b
        L3: - return a - b
    """
    out: list[tuple[str, ChangeKind | None]] = []
    for row in view.rows():
        if row.text is not None:
            out.append((f"L{row.line}  {row.text}", None))
        for change in row.changes:
            out.append((f"L{row.line}: {_MARKS[change.kind]} {change.content}", change.kind))
    return out


def render_compressed(view: CompressedView) -> str:
    return "\n".join(text for text, _ in compressed_lines(view))


# =============================================================================
# Side-by-side
# =============================================================================


def render_side_by_side(comparison: SymbolComparison, width: int = 60) -> str:
    """Two-column text of a greedy alignment; the gutter marks the op kind."""
    name, kind = comparison.identity
    out = [f"{kind.value} {name}"]
    for op in comparison.ops:
        left = (op.old or "")[:width].ljust(width)
        right = op.new or ""
        out.append(f"{left} {_SIDE_MARKS[op.kind]} {right}".rstrip())
    return "\n".join(out)


def comparison_payload(comparison: SymbolComparison) -> dict[str, Any]:
    name, kind = comparison.identity
    return {
        "symbol": name,
        "type": kind.value,
        "presentBefore": comparison.old is not None,
        "presentAfter": comparison.new is not None,
        "rows": [{"kind": op.kind.value, "old": op.old, "new": op.new} for op in comparison.ops],
    }
