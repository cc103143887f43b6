"""Regex extractor used when no grammar variant yields a usable tree.

Line-oriented and approximate: spans end at the matching closing brace for
brace languages and at the first dedent for Python. Results go through the
same post-processing and query filtering as tree-sitter extraction.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from codelineage.core.logging import get_logger
from codelineage.symbols.models import (
    Reference,
    Symbol,
    SymbolKind,
    UsageKind,
    is_trivial_constant,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class _Pattern:
    regex: re.Pattern[str]
    kind: SymbolKind
    group: int = 1
    extends_group: int | None = None


def _p(
    pattern: str,
    kind: SymbolKind,
    *,
    flags: int = 0,
    group: int = 1,
    extends_group: int | None = None,
) -> _Pattern:
    return _Pattern(re.compile(pattern, flags), kind, group, extends_group)


_BRACE_PATTERNS: dict[str, list[_Pattern]] = {
    "javascript": [
        _p(
            r"^(?:export\s+)?(?:default\s+)?class\s+(\w+)(?:\s+extends\s+([\w.]+))?",
            SymbolKind.CLASS,
            extends_group=2,
        ),
        _p(r"^(?:export\s+)?(?:async\s+)?function\s*\*?\s*(\w+)", SymbolKind.FUNCTION),
        _p(r"^(?:export\s+)?const\s+(\w+)\s*=", SymbolKind.CONSTANT),
    ],
    "csharp": [
        _p(
            r"^(?:[\w<>\[\]]+\s+)*class\s+(\w+)(?:\s*:\s*([\w.]+))?",
            SymbolKind.CLASS,
            extends_group=2,
        ),
        _p(r"^(?:[\w<>\[\]]+\s+)*interface\s+(\w+)", SymbolKind.INTERFACE),
        _p(r"^(?:\w+\s+)*const\s+[\w<>\[\]]+\s+(\w+)\s*=", SymbolKind.CONSTANT),
    ],
    "powershell": [
        _p(
            r"^class\s+(\w+)(?:\s*:\s*(\w+))?",
            SymbolKind.CLASS,
            flags=re.IGNORECASE,
            extends_group=2,
        ),
        _p(r"^function\s+([\w-]+)", SymbolKind.FUNCTION, flags=re.IGNORECASE),
        _p(r"^\$(?:global|script):(\w+)", SymbolKind.GLOBAL, flags=re.IGNORECASE),
        _p(r"^\[\w+\]\s*(\w+)\s*\(", SymbolKind.METHOD),
    ],
    "bash": [
        _p(r"^(\w+)\s*\(\s*\)\s*\{", SymbolKind.FUNCTION),
        _p(r"^function\s+(\w+)", SymbolKind.FUNCTION),
        _p(r"^readonly\s+(\w+)=", SymbolKind.CONSTANT),
        _p(r"^export\s+(\w+)", SymbolKind.EXPORT),
    ],
    "r": [
        _p(r"^([\w.]+)\s*<-\s*function", SymbolKind.FUNCTION),
        _p(r"^([A-Z][A-Z._0-9]*)\s*<-", SymbolKind.CONSTANT),
    ],
}
_BRACE_PATTERNS["typescript"] = _BRACE_PATTERNS["javascript"]

_PY_CLASS = re.compile(r"^class\s+(\w+)(?:\(([^)]*)\))?\s*:")
_PY_DEF = re.compile(r"^(?:async\s+)?def\s+(\w+)")
_PY_CONST = re.compile(r"^([A-Z][A-Z_0-9]*)\s*=")
_PY_GLOBAL = re.compile(r"^global\s+(\w+)")

# Kinds whose span is a single line
_SINGLE_LINE = frozenset({SymbolKind.CONSTANT, SymbolKind.GLOBAL, SymbolKind.EXPORT})


def _brace_end(lines: list[str], start: int) -> int:
    """Index of the line closing the first brace block opened at or after ``start``.

    Falls back to ``start`` when no brace opens within the file. String
    contents are not considered.
    """
    depth = 0
    opened = False
    for i in range(start, len(lines)):
        for ch in lines[i]:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
                if opened and depth == 0:
                    return i
        if not opened and i > start and lines[i].strip():
            # Statement without a block
            return start
    return start if not opened else len(lines) - 1


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _indent_end(lines: list[str], start: int) -> int:
    """Index of the last line of the indented block headed at ``start``."""
    base = _indent(lines[start])
    end = start
    for i in range(start + 1, len(lines)):
        stripped = lines[i].strip()
        if not stripped:
            continue
        if _indent(lines[i]) <= base:
            break
        end = i
    return end


def _extract_brace(lines: list[str], language: str) -> list[Symbol]:
    symbols: list[Symbol] = []
    for idx, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed:
            continue
        for pattern in _BRACE_PATTERNS[language]:
            m = pattern.regex.match(trimmed)
            if m is None:
                continue
            name = m.group(pattern.group)
            if pattern.kind is SymbolKind.CONSTANT and is_trivial_constant(name):
                continue
            end = idx if pattern.kind in _SINGLE_LINE else _brace_end(lines, idx)
            extends = m.group(pattern.extends_group) if pattern.extends_group else None
            symbols.append(
                Symbol(
                    name=name,
                    kind=pattern.kind,
                    start_line=idx + 1,
                    end_line=end + 1,
                    language=language,
                    extends=extends or None,
                )
            )
    return symbols


def _extract_python(lines: list[str]) -> list[Symbol]:
    symbols: list[Symbol] = []
    current_class: str | None = None
    class_indent = 0
    for idx, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        indent = _indent(line)
        if current_class is not None and indent <= class_indent:
            current_class = None

        if m := _PY_CLASS.match(trimmed):
            bases = (m.group(2) or "").split(",")[0].strip()
            symbols.append(
                Symbol(
                    name=m.group(1),
                    kind=SymbolKind.CLASS,
                    start_line=idx + 1,
                    end_line=_indent_end(lines, idx) + 1,
                    language="python",
                    extends=bases or None,
                )
            )
            current_class = m.group(1)
            class_indent = indent
        elif m := _PY_DEF.match(trimmed):
            in_class = current_class is not None and indent > class_indent
            symbols.append(
                Symbol(
                    name=m.group(1),
                    kind=SymbolKind.METHOD if in_class else SymbolKind.FUNCTION,
                    start_line=idx + 1,
                    end_line=_indent_end(lines, idx) + 1,
                    language="python",
                    parent=current_class if in_class else None,
                )
            )
        elif indent == 0 and (m := _PY_CONST.match(trimmed)):
            if not is_trivial_constant(m.group(1)):
                symbols.append(
                    Symbol(m.group(1), SymbolKind.CONSTANT, idx + 1, idx + 1, "python")
                )
        elif m := _PY_GLOBAL.match(trimmed):
            symbols.append(Symbol(m.group(1), SymbolKind.GLOBAL, idx + 1, idx + 1, "python"))
    return symbols


def regex_extract(source: str, language: str) -> list[Symbol]:
    """Best-effort symbol extraction without a parse tree.

    Unknown languages use the JavaScript patterns.
    """
    lines = source.splitlines()
    log.info("regex_fallback_used", language=language, lines=len(lines))
    if language == "python":
        return _extract_python(lines)
    if language not in _BRACE_PATTERNS:
        language = "javascript"
    return _extract_brace(lines, language)


def regex_references(
    source: str, names: Iterable[str], language: str | None = None
) -> list[Reference]:
    """Whole-word matches of ``names``; a following ``(`` marks a call.

    With ``language`` given, matches on a line where the regex extractor
    finds a declaration of the same name are dropped. Context is unknown
    without a tree, so it is always None.
    """
    bare = {name.rsplit(".", 1)[-1] for name in names}
    if not bare:
        return []
    declared: set[tuple[str, int]] = set()
    if language is not None:
        declared = {
            (symbol.name, symbol.start_line)
            for symbol in regex_extract(source, language)
            if symbol.name in bare
        }
    pattern = re.compile(r"\b(" + "|".join(re.escape(n) for n in sorted(bare)) + r")\b(\s*\()?")
    found: list[Reference] = []
    for lineno, line in enumerate(source.splitlines(), start=1):
        for m in pattern.finditer(line):
            if (m.group(1), lineno) in declared:
                continue
            usage = UsageKind.CALL if m.group(2) else UsageKind.REFERENCE
            found.append(Reference(symbol=m.group(1), line=lineno, usage=usage))
    return found
