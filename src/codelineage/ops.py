"""Orchestration: extraction, project-wide reference search, evolution runs.

Each operation fans independent units of work (one file, one symbol
identity) out to a process pool when ``workers.max_workers > 1`` and runs
them in-process otherwise. Worker functions are module-level and exchange
only picklable dataclasses; parse trees never leave the process that built
them. A failing unit is logged and omitted; the rest of the run continues.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from codelineage.config.models import CodeLineageConfig
from codelineage.core.errors import UnsupportedLanguageError
from codelineage.core.excludes import kept_dirs
from codelineage.core.logging import get_logger
from codelineage.evolution.diff import DiffOp, greedy_diff
from codelineage.evolution.engine import build_chain, collect_versions
from codelineage.evolution.models import SymbolVersion, VersionChain
from codelineage.history.provider import GitHistory
from codelineage.parsing.packs import detect_language, extensions_for
from codelineage.symbols.models import ExtractionQuery, Identity, Reference, Symbol
from codelineage.symbols.service import SymbolService

log = get_logger(__name__)

R = TypeVar("R")


def _config(config: CodeLineageConfig | None) -> CodeLineageConfig:
    return config or CodeLineageConfig()


def _service(config: CodeLineageConfig) -> SymbolService:
    return SymbolService.get(config.parsing.max_error_ratio)


def _run(
    fn: Callable[..., R],
    jobs: Sequence[tuple[Any, ...]],
    workers: int,
    on_error: Callable[[tuple[Any, ...], Exception], None],
) -> list[R]:
    """Run ``fn(*job)`` for every job; results keep job order, failures are dropped."""
    results: dict[int, R] = {}
    if workers > 1 and len(jobs) > 1:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(fn, *job): i for i, job in enumerate(jobs)}
            for future in as_completed(futures):
                i = futures[future]
                try:
                    results[i] = future.result()
                except Exception as e:
                    on_error(jobs[i], e)
    else:
        for i, job in enumerate(jobs):
            try:
                results[i] = fn(*job)
            except Exception as e:
                on_error(job, e)
    return [results[i] for i in sorted(results)]


# =============================================================================
# Extraction
# =============================================================================


def extract_file(
    path: Path | str,
    query: ExtractionQuery | None = None,
    config: CodeLineageConfig | None = None,
) -> list[Symbol]:
    """Symbols of one file on disk.

    Raises:
        UnsupportedLanguageError: The extension maps to no language pack.
    """
    config = _config(config)
    return _service(config).extract_path(Path(path), query)


# =============================================================================
# References
# =============================================================================


@dataclass
class FileReferences:
    """Reference search result for one file (worker output)."""

    path: str
    references: list[Reference] = field(default_factory=list)
    error: str | None = None


def discover_files(
    root: Path,
    extensions: frozenset[str],
    exclude_dirs: Sequence[str] = (),
    max_file_size_kb: int | None = None,
) -> list[Path]:
    """Files under ``root`` whose extension (no dot) is listed, pruning excluded dirs."""
    extra = frozenset(exclude_dirs)
    max_bytes = max_file_size_kb * 1024 if max_file_size_kb else None
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = kept_dirs(dirnames, extra)
        for name in sorted(filenames):
            if Path(name).suffix.lower().lstrip(".") not in extensions:
                continue
            candidate = Path(dirpath) / name
            if max_bytes is not None:
                try:
                    size = candidate.stat().st_size
                except OSError:
                    continue
                if size > max_bytes:
                    log.debug("file_skipped_size", path=str(candidate), size=size)
                    continue
            found.append(candidate)
    return found


def _references_in_file(
    path: str, rel: str, language: str, targets: list[Symbol], max_error_ratio: float
) -> FileReferences:
    # Failures are returned, not raised, so the pool never unpickles an error
    service = SymbolService.get(max_error_ratio)
    try:
        source = Path(path).read_bytes()
        refs = service.references(source, language, targets)
    except Exception as e:
        return FileReferences(path=rel, error=f"{type(e).__name__}: {e}")
    return FileReferences(
        path=rel,
        references=[dataclasses.replace(ref, path=rel) for ref in refs],
    )


def _normalize_exts(values: Sequence[str]) -> frozenset[str]:
    return frozenset(v.lower().lstrip(".") for v in values)


def find_project_references(
    path: Path | str,
    root: Path | str | None = None,
    query: ExtractionQuery | None = None,
    config: CodeLineageConfig | None = None,
) -> list[Reference]:
    """Uses of the symbols defined in ``path`` across same-language project files.

    The symbols are extracted from ``path`` with ``query``. Every file under
    ``root`` (default: the file's directory) whose extension belongs to the
    same language is searched, the defining file included. References carry
    the root-relative path of the file they were found in.
    """
    config = _config(config)
    target = Path(path)
    language = detect_language(target)
    if language is None:
        raise UnsupportedLanguageError.for_path(str(target))

    symbols = _service(config).extract_path(target, query)
    if not symbols:
        log.info("no_target_symbols", path=str(target))
        return []

    base = Path(root) if root is not None else target.parent
    include = config.references.include_extensions
    extensions = _normalize_exts(include) if include else extensions_for(language)
    files = discover_files(
        base,
        extensions,
        config.references.exclude_dirs,
        config.parsing.max_file_size_kb,
    )
    log.info("reference_search", targets=len(symbols), files=len(files), language=language)

    def on_error(job: tuple[Any, ...], e: Exception) -> None:
        log.warning("references_failed", path=job[1], error=type(e).__name__, message=str(e))

    jobs = [
        (str(f), f.relative_to(base).as_posix(), language, symbols, config.parsing.max_error_ratio)
        for f in files
    ]
    results = _run(_references_in_file, jobs, config.workers.max_workers, on_error)
    for result in results:
        if result.error is not None:
            log.warning("references_failed", path=result.path, message=result.error)
    return [ref for result in results for ref in result.references]


# =============================================================================
# Evolution
# =============================================================================


def _open_history(path: Path, repo: Path | str | None) -> GitHistory:
    if repo is not None:
        return GitHistory(repo)
    return GitHistory.discover(path.resolve().parent)


def _language_of(path: Path) -> str:
    language = detect_language(path)
    if language is None:
        raise UnsupportedLanguageError.for_path(str(path))
    return language


def evolve(
    path: Path | str,
    repo: Path | str | None = None,
    query: ExtractionQuery | None = None,
    config: CodeLineageConfig | None = None,
    ref: str = "HEAD",
    limit: int | None = None,
) -> list[VersionChain]:
    """Version chains for every symbol of ``path`` across its git history.

    Snapshots come from first-parent history (renames followed). Chains are
    built per identity, in the order identities first appeared.
    """
    config = _config(config)
    target = Path(path)
    language = _language_of(target)
    history = _open_history(target, repo)
    rel = history.relpath(target)

    snapshots = history.snapshots(rel, ref=ref, limit=limit)
    log.info("evolution_snapshots", path=rel, snapshots=len(snapshots))
    groups = collect_versions(snapshots, language, query, _service(config))

    def on_error(job: tuple[Any, ...], e: Exception) -> None:
        log.warning("chain_failed", symbol=job[0][0], error=type(e).__name__, message=str(e))

    jobs: list[tuple[Identity, list[SymbolVersion]]] = list(groups.items())
    return _run(build_chain, jobs, config.workers.max_workers, on_error)


@dataclass(frozen=True)
class SymbolComparison:
    """One identity's text at two revisions, aligned line by line."""

    identity: Identity
    old: str | None
    new: str | None
    ops: list[DiffOp]


def compare(
    path: Path | str,
    old_ref: str,
    new_ref: str,
    repo: Path | str | None = None,
    query: ExtractionQuery | None = None,
    config: CodeLineageConfig | None = None,
) -> list[SymbolComparison]:
    """Side-by-side comparison of a file's symbols between two revisions.

    Identities present at either revision are listed, ``old_ref`` order
    first. A symbol missing at one side compares against no lines.
    """
    config = _config(config)
    target = Path(path)
    language = _language_of(target)
    history = _open_history(target, repo)
    rel = history.relpath(target)
    service = _service(config)

    def segments(ref: str) -> dict[Identity, str]:
        content = history.content_at(ref, rel)
        found: dict[Identity, str] = {}
        for symbol in service.extract(content, language, query):
            found.setdefault(symbol.identity, symbol.segment(content))
        return found

    old = segments(old_ref)
    new = segments(new_ref)
    lookahead = config.diff.lookahead

    comparisons: list[SymbolComparison] = []
    for identity in [*old, *(i for i in new if i not in old)]:
        before, after = old.get(identity), new.get(identity)
        ops = greedy_diff(
            before.splitlines() if before is not None else [],
            after.splitlines() if after is not None else [],
            lookahead=lookahead,
        )
        comparisons.append(SymbolComparison(identity, before, after, ops))
    return comparisons
