"""Symbol extraction and reference matching over tree-sitter trees."""

from codelineage.symbols.extractor import SymbolExtractor, postprocess
from codelineage.symbols.languages import EXTRACTORS, get_extractor
from codelineage.symbols.models import (
    ExtractionQuery,
    Reference,
    ScopeFilter,
    Symbol,
    SymbolKind,
    UsageKind,
)
from codelineage.symbols.references import ReferenceMatcher, find_references

__all__ = [
    "EXTRACTORS",
    "ExtractionQuery",
    "Reference",
    "ReferenceMatcher",
    "ScopeFilter",
    "Symbol",
    "SymbolExtractor",
    "SymbolKind",
    "UsageKind",
    "find_references",
    "get_extractor",
    "postprocess",
]
