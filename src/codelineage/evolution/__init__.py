"""Symbol evolution across file history: diffs, version chains, compressed views."""

from codelineage.evolution.compositor import compose
from codelineage.evolution.diff import (
    DiffOp,
    DiffOpKind,
    Hunk,
    greedy_diff,
    is_whitespace_equivalent,
    line_diff_from_hunks,
    minimal_hunks,
)
from codelineage.evolution.engine import build_chain, build_chains, collect_versions
from codelineage.evolution.models import (
    ChangeKind,
    CompositedChange,
    CompressedView,
    LineChange,
    LineDiff,
    Snapshot,
    SymbolVersion,
    VersionChain,
)

__all__ = [
    "ChangeKind",
    "CompositedChange",
    "CompressedView",
    "DiffOp",
    "DiffOpKind",
    "Hunk",
    "LineChange",
    "LineDiff",
    "Snapshot",
    "SymbolVersion",
    "VersionChain",
    "build_chain",
    "build_chains",
    "collect_versions",
    "compose",
    "greedy_diff",
    "is_whitespace_equivalent",
    "line_diff_from_hunks",
    "minimal_hunks",
]
