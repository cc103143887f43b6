"""SymbolService: parse + extract + reference matching with regex degradation.

Wraps one shared :class:`TreeSitterParser` so loaded grammars are cached for
the life of a process. When every grammar variant fails for a source text,
extraction and matching fall back to the regex rules instead of dropping the
file.

Usage::

    service = SymbolService.get()
    symbols = service.extract(source, "python", ExtractionQuery.from_wire(query))
    refs = service.references(usage_source, "javascript", symbols)
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from codelineage.core.errors import ExtractionError, ParseError, UnsupportedLanguageError
from codelineage.core.logging import get_logger
from codelineage.parsing.fallback import regex_extract, regex_references
from codelineage.parsing.packs import detect_language
from codelineage.parsing.treesitter import DEFAULT_MAX_ERROR_RATIO, TreeSitterParser
from codelineage.symbols.extractor import postprocess
from codelineage.symbols.languages import get_extractor
from codelineage.symbols.models import ExtractionQuery, Reference, Symbol
from codelineage.symbols.references import ReferenceMatcher

log = get_logger(__name__)


def _as_text(source: str | bytes) -> str:
    if isinstance(source, bytes):
        return source.decode("utf-8", errors="replace")
    return source


class SymbolService:
    """Per-process entry point for symbol extraction and reference search."""

    _instance: SymbolService | None = None

    def __init__(self, max_error_ratio: float = DEFAULT_MAX_ERROR_RATIO) -> None:
        self._parser = TreeSitterParser(max_error_ratio=max_error_ratio)

    @classmethod
    def get(cls, max_error_ratio: float | None = None) -> SymbolService:
        """Return the shared instance, rebuilding it if the ratio changed."""
        ratio = DEFAULT_MAX_ERROR_RATIO if max_error_ratio is None else max_error_ratio
        if cls._instance is None or cls._instance.parser.max_error_ratio != ratio:
            cls._instance = cls(max_error_ratio=ratio)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset singleton (mainly for testing)."""
        cls._instance = None

    @property
    def parser(self) -> TreeSitterParser:
        return self._parser

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(
        self,
        source: str | bytes,
        language: str,
        query: ExtractionQuery | None = None,
    ) -> list[Symbol]:
        """Extract symbols from source text.

        Raises:
            UnsupportedLanguageError: No extractor exists for ``language``.
        """
        query = query or ExtractionQuery()
        extractor = get_extractor(language)
        try:
            result = self._parser.parse(source, extractor.language)
        except ParseError as e:
            log.warning("extract_degraded_to_regex", language=extractor.language, reason=e.message)
            return postprocess(regex_extract(_as_text(source), extractor.language), query)
        return extractor.extract(result.tree, query)

    def extract_path(
        self,
        path: Path,
        query: ExtractionQuery | None = None,
        content: str | bytes | None = None,
    ) -> list[Symbol]:
        """Extract symbols from a file, detecting its language from the extension."""
        language = detect_language(path)
        if language is None:
            raise UnsupportedLanguageError.for_path(str(path))
        if content is None:
            try:
                content = path.read_bytes()
            except OSError as e:
                raise ExtractionError.for_file(str(path), str(e)) from e
        return self.extract(content, language, query)

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def references(
        self,
        source: str | bytes,
        language: str,
        symbols: Iterable[Symbol | str],
    ) -> list[Reference]:
        """Find uses of ``symbols`` in source text."""
        targets = list(symbols)
        matcher = ReferenceMatcher(language)
        try:
            result = self._parser.parse(source, matcher.language)
        except ParseError as e:
            log.warning("references_degraded_to_regex", language=matcher.language, reason=e.message)
            names = [t if isinstance(t, str) else t.name for t in targets]
            return regex_references(_as_text(source), names, matcher.language)
        return matcher.find_references(result.tree, targets)
