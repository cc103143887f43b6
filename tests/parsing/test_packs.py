"""Tests for parsing/packs.py - language registry and detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from codelineage.parsing.packs import (
    PACKS,
    detect_language,
    extensions_for,
    get_pack,
    get_pack_for_ext,
)


class TestDetectLanguage:
    """Extension based detection."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("app.js", "javascript"),
            ("component.jsx", "javascript"),
            ("lib/index.mjs", "javascript"),
            ("types.ts", "typescript"),
            ("view.tsx", "typescript"),
            ("tool.py", "python"),
            ("deploy.sh", "bash"),
            ("Module.psm1", "powershell"),
            ("analysis.R", "r"),
            ("Program.cs", "csharp"),
        ],
    )
    def test_known_extensions(self, path: str, expected: str) -> None:
        assert detect_language(path) == expected

    def test_unknown_extension(self) -> None:
        assert detect_language(Path("README.md")) is None

    def test_no_extension(self) -> None:
        assert detect_language("Makefile") is None


class TestRegistry:
    """PACKS lookups and variant order."""

    def test_javascript_variants_in_fallback_order(self) -> None:
        pack = PACKS["javascript"]

        assert [v.name for v in pack.variants] == ["javascript", "tsx", "typescript"]
        assert pack.primary.name == "javascript"

    def test_typescript_uses_named_entry_points(self) -> None:
        pack = PACKS["typescript"]

        assert pack.primary.language_func == "language_typescript"
        assert pack.variants[1].language_func == "language_tsx"

    def test_aliases(self) -> None:
        assert get_pack("shell") is PACKS["bash"]
        assert get_pack("C_Sharp") is PACKS["csharp"]

    def test_get_pack_for_ext_accepts_leading_dot(self) -> None:
        assert get_pack_for_ext(".PY") is PACKS["python"]

    def test_extensions_for(self) -> None:
        assert extensions_for("javascript") == frozenset({"js", "jsx", "mjs", "cjs"})
        assert extensions_for("cobol") == frozenset()
