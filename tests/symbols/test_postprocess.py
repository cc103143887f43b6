"""Tests for symbols/extractor.py post-processing (no parsing involved)."""

from __future__ import annotations

from codelineage.symbols.extractor import postprocess, remove_overlaps
from codelineage.symbols.models import ExtractionQuery, ScopeFilter, Symbol, SymbolKind


def _sym(name: str, kind: SymbolKind, start: int, end: int, parent: str | None = None) -> Symbol:
    return Symbol(name, kind, start, end, "javascript", parent=parent)


CLASS = _sym("Shop", SymbolKind.CLASS, 1, 20)
FIELD = _sym("items", SymbolKind.FIELD, 2, 2, parent="Shop")
METHOD = _sym("checkout", SymbolKind.METHOD, 4, 10, parent="Shop")
NESTED_FN = _sym("helper", SymbolKind.FUNCTION, 5, 6)
EXPORT = _sym("Shop", SymbolKind.EXPORT, 1, 20)
TAIL = _sym("LIMIT", SymbolKind.CONSTANT, 22, 22)

SETUP = _sym("setup", SymbolKind.FUNCTION, 30, 32)
INNER_GLOBAL = _sym("API", SymbolKind.GLOBAL, 31, 31)


class TestRemoveOverlaps:
    """Containment rules."""

    def test_contained_function_dropped(self) -> None:
        kept = remove_overlaps([CLASS, FIELD, METHOD, NESTED_FN, TAIL])

        assert kept == [CLASS, FIELD, METHOD, TAIL]

    def test_methods_and_exports_survive(self) -> None:
        kept = remove_overlaps([CLASS, EXPORT, METHOD])

        assert kept == [CLASS, EXPORT, METHOD]

    def test_member_kinds_survive_only_with_owner(self) -> None:
        # Given
        owned = _sym("MAX", SymbolKind.CONSTANT, 3, 3, parent="Shop")
        loose = _sym("MAX", SymbolKind.CONSTANT, 3, 3)

        # Then
        assert remove_overlaps([CLASS, owned]) == [CLASS, owned]
        assert remove_overlaps([CLASS, loose]) == [CLASS]


class TestPostprocess:
    """Ordering, overlap removal, query filters, context renaming."""

    def test_sorted_by_line_with_exports_after_declarations(self) -> None:
        result = postprocess([TAIL, EXPORT, METHOD, CLASS], ExtractionQuery())

        assert result == [CLASS, EXPORT, METHOD, TAIL]

    def test_kind_filter_applies_after_overlap_removal(self) -> None:
        # Given: a global assigned inside a function body
        query = ExtractionQuery(kinds=frozenset({SymbolKind.GLOBAL}))

        # When
        filtered = postprocess([SETUP, INNER_GLOBAL], query)
        unfiltered = postprocess([SETUP, INNER_GLOBAL], ExtractionQuery())

        # Then
        assert unfiltered == [SETUP]
        assert filtered == [s for s in unfiltered if query.matches(s)] == []

    def test_owned_field_selected_by_kind(self) -> None:
        query = ExtractionQuery(kinds=frozenset({SymbolKind.FIELD}))

        assert postprocess([CLASS, FIELD], query) == [FIELD]

    def test_exclusions_do_not_resurrect_contained_symbols(self) -> None:
        query = ExtractionQuery(exclusions=frozenset({SymbolKind.CLASS}))

        result = postprocess([CLASS, METHOD, NESTED_FN], query)

        assert result == [METHOD]

    def test_top_level_scope(self) -> None:
        query = ExtractionQuery(scope=ScopeFilter.TOP_LEVEL)

        assert postprocess([CLASS, METHOD, TAIL], query) == [CLASS, TAIL]

    def test_preserve_context_renames_only_methods_with_parent(self) -> None:
        orphan = _sym("run", SymbolKind.METHOD, 30, 31)
        query = ExtractionQuery(preserve_context=True)

        result = postprocess([CLASS, METHOD, orphan], query)

        assert [s.name for s in result] == ["Shop", "Shop.checkout", "run"]
