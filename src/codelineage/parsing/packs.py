"""Language packs: single source of truth for grammar and detection config.

Every language codelineage understands has exactly ONE LanguagePack:
- File extension detection
- Ordered grammar variants for the parse fallback chain

Grammar packages are the per-language ``tree-sitter-*`` wheels; each exposes a
``language()`` function (or a named one, e.g. ``language_tsx``).

The PACKS registry is the canonical lookup: ``PACKS["python"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class GrammarSpec:
    """How to load one tree-sitter grammar."""

    name: str  # Variant key ("javascript", "tsx", ...)
    grammar_package: str  # PyPI package ("tree-sitter-python")
    grammar_module: str  # Python import ("tree_sitter_python")
    min_version: str
    # Non-standard function name (e.g. "language_typescript", "language_tsx")
    language_func: str | None = None


@dataclass(frozen=True)
class LanguagePack:
    """Detection and parse configuration for a single language."""

    name: str  # Canonical language name, also the extractor key
    # Tried in order; the first one that yields a usable tree wins
    variants: tuple[GrammarSpec, ...]
    extensions: frozenset[str] = field(default_factory=frozenset)

    @property
    def primary(self) -> GrammarSpec:
        return self.variants[0]


# =========================================================================
# Grammars
# =========================================================================

_JAVASCRIPT = GrammarSpec(
    name="javascript",
    grammar_package="tree-sitter-javascript",
    grammar_module="tree_sitter_javascript",
    min_version="0.23.0",
)

_TYPESCRIPT = GrammarSpec(
    name="typescript",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    min_version="0.23.0",
    language_func="language_typescript",
)

_TSX = GrammarSpec(
    name="tsx",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    min_version="0.23.0",
    language_func="language_tsx",
)

_PYTHON = GrammarSpec(
    name="python",
    grammar_package="tree-sitter-python",
    grammar_module="tree_sitter_python",
    min_version="0.23.0",
)

_BASH = GrammarSpec(
    name="bash",
    grammar_package="tree-sitter-bash",
    grammar_module="tree_sitter_bash",
    min_version="0.23.0",
)

_POWERSHELL = GrammarSpec(
    name="powershell",
    grammar_package="tree-sitter-powershell",
    grammar_module="tree_sitter_powershell",
    min_version="0.24.0",
)

_R = GrammarSpec(
    name="r",
    grammar_package="tree-sitter-r",
    grammar_module="tree_sitter_r",
    min_version="1.1.0",
)

_CSHARP = GrammarSpec(
    name="c_sharp",
    grammar_package="tree-sitter-c-sharp",
    grammar_module="tree_sitter_c_sharp",
    min_version="0.23.0",
)


# =========================================================================
# Packs
# =========================================================================

JAVASCRIPT_PACK = LanguagePack(
    name="javascript",
    variants=(_JAVASCRIPT, _TSX, _TYPESCRIPT),
    extensions=frozenset({"js", "jsx", "mjs", "cjs"}),
)

TYPESCRIPT_PACK = LanguagePack(
    name="typescript",
    variants=(_TYPESCRIPT, _TSX),
    extensions=frozenset({"ts", "tsx", "mts", "cts"}),
)

PYTHON_PACK = LanguagePack(
    name="python",
    variants=(_PYTHON,),
    extensions=frozenset({"py", "pyi", "pyw"}),
)

BASH_PACK = LanguagePack(
    name="bash",
    variants=(_BASH,),
    extensions=frozenset({"sh", "bash"}),
)

POWERSHELL_PACK = LanguagePack(
    name="powershell",
    variants=(_POWERSHELL,),
    extensions=frozenset({"ps1", "psm1", "psd1"}),
)

R_PACK = LanguagePack(
    name="r",
    variants=(_R,),
    extensions=frozenset({"r"}),
)

CSHARP_PACK = LanguagePack(
    name="csharp",
    variants=(_CSHARP,),
    extensions=frozenset({"cs", "csx"}),
)


# =========================================================================
# Canonical registries
# =========================================================================

_ALL_PACKS: tuple[LanguagePack, ...] = (
    JAVASCRIPT_PACK,
    TYPESCRIPT_PACK,
    PYTHON_PACK,
    BASH_PACK,
    POWERSHELL_PACK,
    R_PACK,
    CSHARP_PACK,
)

# name -> Pack
PACKS: dict[str, LanguagePack] = {pack.name: pack for pack in _ALL_PACKS}
PACKS["shell"] = BASH_PACK
PACKS["c_sharp"] = CSHARP_PACK

# Extension -> Pack
_EXT_TO_PACK: dict[str, LanguagePack] = {}
for _pack in _ALL_PACKS:
    for _ext in _pack.extensions:
        _EXT_TO_PACK[_ext] = _pack


def get_pack(name: str) -> LanguagePack | None:
    """Get a LanguagePack by language name."""
    return PACKS.get(name.lower())


def get_pack_for_ext(ext: str) -> LanguagePack | None:
    """Get a LanguagePack for a file extension (without leading dot)."""
    return _EXT_TO_PACK.get(ext.lower().lstrip("."))


def detect_language(path: str | Path) -> str | None:
    """Detect the canonical language name for a path, or None."""
    pack = get_pack_for_ext(Path(path).suffix)
    return pack.name if pack is not None else None


def extensions_for(language: str) -> frozenset[str]:
    """All extensions that map to ``language`` (used for same-language discovery)."""
    pack = get_pack(language)
    return pack.extensions if pack is not None else frozenset()
