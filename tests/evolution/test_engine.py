"""Tests for evolution/engine.py - version collection and deduplication."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from codelineage.core.errors import ExtractionError
from codelineage.evolution.engine import build_chain, build_chains, collect_versions
from codelineage.evolution.models import ChangeKind, LineChange
from codelineage.symbols.models import ExtractionQuery, Symbol, SymbolKind
from codelineage.symbols.service import SymbolService

V1 = "function f() {\n  return 1;\n}\n"
V2 = "function f() {\n  return 1;   \n}\n"
V3 = "function f() {\n  log();\n  return 1;\n}\n"


class FlakyService:
    """Delegates to the real service but fails on marked content."""

    def extract(
        self, content: str, language: str, query: ExtractionQuery | None = None
    ) -> list[Symbol]:
        if "BOOM" in content:
            raise ExtractionError.for_file("src/app.js", "boom")
        if "CRASH" in content:
            raise AttributeError("NoneType object has no attribute 'type'")
        return SymbolService.get().extract(content, language, query)


class TestBuildChains:
    """Snapshots to chains."""

    def test_whitespace_only_version_dropped(self, make_snapshot: Callable[..., Any]) -> None:
        # Given
        snapshots = [make_snapshot(1, V1), make_snapshot(2, V2), make_snapshot(3, V3)]

        # When
        chains = build_chains(snapshots, "javascript")

        # Then
        assert len(chains) == 1
        chain = chains[0]
        assert chain.identity == ("f", SymbolKind.FUNCTION)
        assert [v.snapshot.commit_id for v in chain.versions] == [
            snapshots[0].commit_id,
            snapshots[2].commit_id,
        ]
        assert len(chain.transitions) == 1
        transition = chain.transitions[0]
        assert (transition.from_commit, transition.to_commit) == (
            snapshots[0].commit_id,
            snapshots[2].commit_id,
        )
        assert transition.changes == (LineChange(ChangeKind.ADD, 2, "  log();"),)

    def test_groups_keep_first_seen_order(self, make_snapshot: Callable[..., Any]) -> None:
        snapshots = [
            make_snapshot(1, "function b() {}\n"),
            make_snapshot(2, "function a() {}\nfunction b() {}\n"),
        ]

        chains = build_chains(snapshots, "javascript")

        assert [c.name for c in chains] == ["b", "a"]
        assert [len(c.versions) for c in chains] == [1, 1]

    def test_query_limits_tracked_symbols(self, make_snapshot: Callable[..., Any]) -> None:
        snapshots = [make_snapshot(1, "class A {}\nfunction f() {}\n")]
        query = ExtractionQuery(kinds=frozenset({SymbolKind.CLASS}))

        chains = build_chains(snapshots, "javascript", query)

        assert [c.identity for c in chains] == [("A", SymbolKind.CLASS)]


class TestCollectVersions:
    """Per-snapshot extraction."""

    def test_failed_snapshot_skipped(self, make_snapshot: Callable[..., Any]) -> None:
        # Given
        snapshots = [make_snapshot(1, V1), make_snapshot(2, V3 + "// BOOM\n")]

        # When
        service: Any = FlakyService()
        groups = collect_versions(snapshots, "javascript", service=service)

        # Then
        versions = groups[("f", SymbolKind.FUNCTION)]
        assert [v.snapshot.commit_id for v in versions] == [snapshots[0].commit_id]

    def test_unexpected_failure_skips_only_that_snapshot(
        self, make_snapshot: Callable[..., Any]
    ) -> None:
        # Given
        snapshots = [
            make_snapshot(1, V1),
            make_snapshot(2, V3 + "// CRASH\n"),
            make_snapshot(3, V3),
        ]

        # When
        service: Any = FlakyService()
        groups = collect_versions(snapshots, "javascript", service=service)

        # Then
        versions = groups[("f", SymbolKind.FUNCTION)]
        assert [v.snapshot.commit_id for v in versions] == [
            snapshots[0].commit_id,
            snapshots[2].commit_id,
        ]

    def test_first_duplicate_identity_wins(self, make_snapshot: Callable[..., Any]) -> None:
        source = "def f():\n    return 1\n\ndef f():\n    return 2\n"

        groups = collect_versions([make_snapshot(1, source, "app.py")], "python")

        versions = groups[("f", SymbolKind.FUNCTION)]
        assert len(versions) == 1
        assert versions[0].segment == "def f():\n    return 1"

    def test_segment_is_symbol_span(self, make_snapshot: Callable[..., Any]) -> None:
        source = "const A = 1;\n\nfunction f() {\n  return A;\n}\n"

        groups = collect_versions([make_snapshot(1, source)], "javascript")

        assert groups[("f", SymbolKind.FUNCTION)][0].segment == "function f() {\n  return A;\n}"


class TestBuildChain:
    """Deduplication against the last retained version."""

    def test_empty(self) -> None:
        chain = build_chain(("f", SymbolKind.FUNCTION), [])

        assert chain.versions == ()
        assert chain.transitions == ()

    def test_compares_against_last_retained(self, make_version: Callable[..., Any]) -> None:
        # Given: v2 is whitespace-equivalent to v1, v3 to v1 as well
        versions = [
            make_version(1, "a\nb"),
            make_version(2, "a \nb"),
            make_version(3, "a\n  b"),
            make_version(4, "a\nc"),
        ]

        # When
        chain = build_chain(("f", SymbolKind.FUNCTION), versions)

        # Then
        assert [v.snapshot.commit_id for v in chain.versions] == [
            versions[0].snapshot.commit_id,
            versions[3].snapshot.commit_id,
        ]
        assert chain.transitions[0].changes == (
            LineChange(ChangeKind.DELETE, 2, "b"),
            LineChange(ChangeKind.ADD, 2, "c"),
        )

    def test_every_retained_pair_differs(self, make_version: Callable[..., Any]) -> None:
        versions = [make_version(i, text) for i, text in enumerate(["x", "x ", "y", " y", "z"])]

        chain = build_chain(("f", SymbolKind.FUNCTION), versions)

        segments = [v.segment for v in chain.versions]
        assert segments == ["x", "y", "z"]
        assert len(chain.transitions) == len(chain.versions) - 1
