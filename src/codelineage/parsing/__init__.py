"""Tree-sitter parsing with grammar fallback chains."""

from codelineage.parsing.packs import PACKS, LanguagePack, detect_language, get_pack
from codelineage.parsing.treesitter import ParseResult, TreeSitterParser, first_success

__all__ = [
    "PACKS",
    "LanguagePack",
    "ParseResult",
    "TreeSitterParser",
    "detect_language",
    "first_success",
    "get_pack",
]
