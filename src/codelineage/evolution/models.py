"""Evolution data models: snapshots, symbol versions, diffs, chains, views.

All records are immutable and created fresh per call. Line numbers are
1-based and, inside a ``LineDiff``, local to that transition's own texts.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from codelineage.symbols.models import Identity, Symbol


class ChangeKind(StrEnum):
    ADD = "add"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One commit's content for a tracked file."""

    commit_id: str
    author: str
    timestamp: datetime
    message: str
    content: str
    path: str  # Path at this commit (differs from the current path across renames)

    @property
    def short_id(self) -> str:
        return self.commit_id[:7]


@dataclass(frozen=True, slots=True)
class SymbolVersion:
    """A symbol as it appeared in one snapshot."""

    snapshot: Snapshot
    symbol: Symbol
    segment: str

    @property
    def lines(self) -> list[str]:
        return self.segment.splitlines()


@dataclass(frozen=True, slots=True)
class LineChange:
    kind: ChangeKind
    line: int
    content: str


@dataclass(frozen=True, slots=True)
class LineDiff:
    """Adds and deletes of one transition, in that transition's coordinates."""

    from_commit: str
    to_commit: str
    changes: tuple[LineChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.changes

    @property
    def max_line(self) -> int:
        return max((c.line for c in self.changes), default=0)


@dataclass(frozen=True, slots=True)
class VersionChain:
    """Deduplicated, diffed history of one symbol identity.

    ``versions`` are chronological. ``transitions[i]`` is the diff from
    ``versions[i]`` to ``versions[i + 1]``.
    """

    identity: Identity
    versions: tuple[SymbolVersion, ...]
    transitions: tuple[LineDiff, ...] = ()

    @property
    def name(self) -> str:
        return self.identity[0]

    @property
    def kind(self) -> str:
        return self.identity[1].value

    @property
    def latest(self) -> SymbolVersion:
        return self.versions[-1]

    def newest_first(self) -> list[SymbolVersion]:
        return list(reversed(self.versions))


@dataclass(frozen=True, slots=True)
class CompositedChange:
    kind: ChangeKind
    content: str
    transition: int  # Index into VersionChain.transitions


@dataclass(frozen=True, slots=True)
class ViewRow:
    line: int
    text: str | None  # None past the end of the final content
    changes: tuple[CompositedChange, ...]


@dataclass(frozen=True, slots=True)
class CompressedView:
    """Final content annotated with every historical change at its reported line."""

    identity: Identity
    final_lines: tuple[str, ...]
    changes_by_line: dict[int, tuple[CompositedChange, ...]] = field(default_factory=dict)
    transition_count: int = 0

    @property
    def span(self) -> int:
        """Rendered range: final content or the furthest touched line, whichever is longer."""
        return max(len(self.final_lines), max(self.changes_by_line, default=0))

    def rows(self) -> Iterator[ViewRow]:
        for line in range(1, self.span + 1):
            text = self.final_lines[line - 1] if line <= len(self.final_lines) else None
            yield ViewRow(line, text, self.changes_by_line.get(line, ()))
