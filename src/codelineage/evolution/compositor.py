"""Compressed view: every historical change of a symbol laid over its final text.

Changes are bucketed by the line number their own transition reported. They
are not remapped into the final version's coordinates, so entries from
different transitions can share a bucket while referring to different
historical lines. The view spans past the end of the final content whenever
a change was recorded beyond it.
"""

from __future__ import annotations

from codelineage.evolution.models import CompositedChange, CompressedView, VersionChain


def compose(chain: VersionChain) -> CompressedView:
    buckets: dict[int, list[CompositedChange]] = {}
    for index, transition in enumerate(chain.transitions):
        for change in transition.changes:
            buckets.setdefault(change.line, []).append(
                CompositedChange(kind=change.kind, content=change.content, transition=index)
            )

    final_lines = tuple(chain.latest.lines) if chain.versions else ()
    return CompressedView(
        identity=chain.identity,
        final_lines=final_lines,
        changes_by_line={line: tuple(entries) for line, entries in sorted(buckets.items())},
        transition_count=len(chain.transitions),
    )
