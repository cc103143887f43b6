"""Line diff strategies.

Two strategies with different jobs:

- ``greedy_diff``: bounded-lookahead two-cursor alignment for side-by-side
  comparison. Cheap and local; not a minimum edit script.
- ``minimal_hunks``: zero-context Myers hunks from libgit2 (via pygit2),
  turned into ``LineDiff`` records by ``line_diff_from_hunks``. This is the
  diff the evolution engine stores.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

import pygit2

from codelineage.evolution.models import ChangeKind, LineChange, LineDiff

DEFAULT_LOOKAHEAD = 5

_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# Bounded-lookahead diff
# =============================================================================


class DiffOpKind(StrEnum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True, slots=True)
class DiffOp:
    kind: DiffOpKind
    old: str | None = None
    new: str | None = None


def greedy_diff(
    old: Sequence[str], new: Sequence[str], lookahead: int = DEFAULT_LOOKAHEAD
) -> list[DiffOp]:
    """Align two line lists with a bounded forward search.

    At a mismatch, look up to ``lookahead`` lines ahead in ``new`` for
    ``old[i]`` (lines skipped are Added), then in ``old`` for ``new[j]``
    (lines skipped are Removed); otherwise pair the two lines as Modified.
    """
    ops: list[DiffOp] = []
    i = j = 0
    while i < len(old) and j < len(new):
        if old[i] == new[j]:
            ops.append(DiffOp(DiffOpKind.UNCHANGED, old[i], new[j]))
            i += 1
            j += 1
            continue

        k = _find_ahead(new, old[i], j + 1, lookahead)
        if k is not None:
            ops.extend(DiffOp(DiffOpKind.ADDED, None, line) for line in new[j:k])
            ops.append(DiffOp(DiffOpKind.UNCHANGED, old[i], new[k]))
            i += 1
            j = k + 1
            continue

        k = _find_ahead(old, new[j], i + 1, lookahead)
        if k is not None:
            ops.extend(DiffOp(DiffOpKind.REMOVED, line, None) for line in old[i:k])
            ops.append(DiffOp(DiffOpKind.UNCHANGED, old[k], new[j]))
            i = k + 1
            j += 1
            continue

        ops.append(DiffOp(DiffOpKind.MODIFIED, old[i], new[j]))
        i += 1
        j += 1

    ops.extend(DiffOp(DiffOpKind.REMOVED, line, None) for line in old[i:])
    ops.extend(DiffOp(DiffOpKind.ADDED, None, line) for line in new[j:])
    return ops


def _find_ahead(lines: Sequence[str], target: str, start: int, lookahead: int) -> int | None:
    for k in range(start, min(start + lookahead, len(lines))):
        if lines[k] == target:
            return k
    return None


# =============================================================================
# Minimal hunks
# =============================================================================


@dataclass(frozen=True, slots=True)
class Hunk:
    """One zero-context hunk; ``lines`` holds (origin, content) pairs."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[tuple[str, str], ...]


def _terminated(text: str) -> bytes:
    # Avoid "no newline at end of file" markers for a missing final newline
    if text and not text.endswith("\n"):
        text += "\n"
    return text.encode("utf-8")


def _decoded(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\n").rstrip("\r")


def minimal_hunks(old_text: str, new_text: str) -> list[Hunk]:
    """Zero-context Myers diff hunks between two texts.

    libgit2 hunk lines point into the input buffers; both buffers stay bound
    here until every line has been copied out.
    """
    old_buf = _terminated(old_text)
    new_buf = _terminated(new_text)
    patch = pygit2.Patch.create_from(old_buf, new_buf, context_lines=0)
    hunks: list[Hunk] = []
    for hunk in patch.hunks:
        hunks.append(
            Hunk(
                old_start=hunk.old_start,
                old_count=hunk.old_lines,
                new_start=hunk.new_start,
                new_count=hunk.new_lines,
                lines=tuple((line.origin, _decoded(line.raw_content)) for line in hunk.lines),
            )
        )
    # Keeps the input buffers alive past the last hunk line read
    del old_buf, new_buf
    return hunks


def line_diff_from_hunks(
    hunks: Iterable[Hunk], from_commit: str = "", to_commit: str = ""
) -> LineDiff:
    """Classify hunk bodies into Delete/Add changes with running line counters."""
    changes: list[LineChange] = []
    for hunk in hunks:
        old_line = hunk.old_start
        new_line = hunk.new_start
        for origin, content in hunk.lines:
            if origin == "-":
                changes.append(LineChange(ChangeKind.DELETE, old_line, content))
                old_line += 1
            elif origin == "+":
                changes.append(LineChange(ChangeKind.ADD, new_line, content))
                new_line += 1
            elif origin == " ":
                old_line += 1
                new_line += 1
    return LineDiff(from_commit=from_commit, to_commit=to_commit, changes=tuple(changes))


def line_diff(old_text: str, new_text: str, from_commit: str = "", to_commit: str = "") -> LineDiff:
    return line_diff_from_hunks(minimal_hunks(old_text, new_text), from_commit, to_commit)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def is_whitespace_equivalent(a: str, b: str) -> bool:
    """True when two texts differ only in whitespace."""
    return normalize_whitespace(a) == normalize_whitespace(b)
