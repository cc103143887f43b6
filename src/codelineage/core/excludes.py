"""Directory names skipped while discovering project files for reference search.

``HARDCODED_DIRS`` are never entered. ``DEFAULT_PRUNABLE_DIRS`` hold
dependency, build and tool output that would only produce noise; the
``references.exclude_dirs`` setting adds names on top of both.
"""

from __future__ import annotations

from collections.abc import Iterable

HARDCODED_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn", ".bzr", ".codelineage"})

_TOOLCHAIN_OUTPUT: dict[str, tuple[str, ...]] = {
    "node": ("node_modules", "bower_components", ".npm", ".yarn", ".next", ".nuxt"),
    "python": (
        "__pycache__",
        "venv",
        ".venv",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
    ),
    "dotnet": ("bin", "obj", "packages"),
    "r": ("renv", ".Rproj.user"),
    "editor": (".idea", ".vscode", ".vs"),
    "build": ("dist", "build", "out", "coverage", ".cache", "vendor"),
}

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    name for names in _TOOLCHAIN_OUTPUT.values() for name in names
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def is_prunable(dirname: str, extra: frozenset[str] | set[str] = frozenset()) -> bool:
    """True when ``dirname`` is built in or listed in ``extra``."""
    return dirname in PRUNABLE_DIRS or dirname in extra


def kept_dirs(dirnames: Iterable[str], extra: frozenset[str] | set[str] = frozenset()) -> list[str]:
    """Sorted subset of ``dirnames`` a directory walk should descend into."""
    return sorted(d for d in dirnames if not is_prunable(d, extra))
