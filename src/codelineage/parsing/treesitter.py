"""Tree-sitter parsing with an ordered grammar fallback chain.

A language pack lists one or more grammar variants. Each variant is tried in
order; a variant fails when its grammar package is not installed or when the
resulting tree is mostly ERROR nodes. The first variant that succeeds wins.
When every variant fails, ``ParseError`` is raised and callers degrade to the
regex extractor in ``codelineage.parsing.fallback``.

Usage::

    parser = TreeSitterParser()
    result = parser.parse(source, "javascript")
    result.variant       # "javascript", or "tsx" if JSX forced a retry
    result.root_node     # tree-sitter Node
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import tree_sitter

from codelineage.core.errors import ParseError, UnsupportedLanguageError
from codelineage.core.logging import get_logger
from codelineage.parsing.packs import GrammarSpec, get_pack

log = get_logger(__name__)

DEFAULT_MAX_ERROR_RATIO = 0.5


@dataclass
class ParseResult:
    """Result of parsing one source text."""

    tree: Any  # Tree-sitter Tree (not serializable)
    root_node: Any  # Tree-sitter Node
    language: str  # Canonical language (pack name)
    variant: str  # Grammar variant that produced the tree
    source: bytes
    error_count: int
    total_nodes: int

    @property
    def error_ratio(self) -> float:
        if self.total_nodes == 0:
            return 0.0
        return self.error_count / self.total_nodes


# An attempt yields either a result or the error describing why it failed.
Attempt = Callable[[], "ParseResult | ParseError"]


def first_success(attempts: Iterable[Attempt]) -> ParseResult:
    """Run attempts in order and return the first ParseResult.

    Raises the last ParseError when no attempt succeeds.
    """
    last_error: ParseError | None = None
    for attempt in attempts:
        outcome = attempt()
        if isinstance(outcome, ParseResult):
            return outcome
        log.debug("parse_variant_failed", error=str(outcome))
        last_error = outcome
    if last_error is None:
        raise ParseError.variant_failed("unknown", "none", "no grammar variants configured")
    raise last_error


def count_nodes(root: Any) -> tuple[int, int]:
    """Return (error_count, total_nodes) for a tree.

    ERROR and MISSING nodes both count as errors.
    """
    error_count = 0
    total_nodes = 0
    stack = [root]
    while stack:
        node = stack.pop()
        total_nodes += 1
        if node.type == "ERROR" or node.is_missing:
            error_count += 1
        stack.extend(node.children)
    return error_count, total_nodes


@dataclass
class TreeSitterParser:
    """Tree-sitter parser shared across languages.

    Loaded grammars are cached per variant name, so one parser instance can
    serve a whole extraction run.
    """

    max_error_ratio: float = DEFAULT_MAX_ERROR_RATIO
    _parser: Any = field(default=None, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._languages = {}

    def _get_language(self, grammar: GrammarSpec) -> Any:
        """Get or load a tree-sitter Language for a grammar variant.

        Raises ImportError or AttributeError when the grammar package is
        missing or lacks the expected entry point.
        """
        if grammar.name in self._languages:
            return self._languages[grammar.name]

        mod = importlib.import_module(grammar.grammar_module)
        lang_fn = getattr(mod, grammar.language_func or "language")
        lang = tree_sitter.Language(lang_fn())
        self._languages[grammar.name] = lang
        return lang

    def _try_variant(
        self, source: bytes, language: str, grammar: GrammarSpec
    ) -> ParseResult | ParseError:
        try:
            ts_lang = self._get_language(grammar)
        except (ImportError, AttributeError) as e:
            return ParseError.variant_failed(
                language, grammar.name, f"grammar {grammar.grammar_package} unavailable: {e}"
            )

        self._parser.language = ts_lang
        tree = self._parser.parse(source)
        error_count, total_nodes = count_nodes(tree.root_node)

        result = ParseResult(
            tree=tree,
            root_node=tree.root_node,
            language=language,
            variant=grammar.name,
            source=source,
            error_count=error_count,
            total_nodes=total_nodes,
        )
        if result.error_ratio > self.max_error_ratio:
            return ParseError.variant_failed(
                language,
                grammar.name,
                f"error ratio {result.error_ratio:.2f} exceeds {self.max_error_ratio:.2f}",
            )
        return result

    def parse(self, source: str | bytes, language: str) -> ParseResult:
        """Parse source text with the language's variant chain.

        Args:
            source: Source text. Strings are encoded as UTF-8.
            language: Canonical language name (or alias such as "shell").

        Returns:
            ParseResult from the first variant that produced a usable tree.

        Raises:
            UnsupportedLanguageError: No pack exists for ``language``.
            ParseError: Every variant failed.
        """
        pack = get_pack(language)
        if pack is None:
            raise UnsupportedLanguageError.for_language(language)

        data = source.encode("utf-8") if isinstance(source, str) else source

        def attempt_for(grammar: GrammarSpec) -> Attempt:
            return lambda: self._try_variant(data, pack.name, grammar)

        result = first_success(attempt_for(g) for g in pack.variants)
        if result.variant != pack.primary.name:
            log.debug("parse_fallback_variant", language=pack.name, variant=result.variant)
        return result
