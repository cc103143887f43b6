"""Evolution engine: per-symbol version chains across file snapshots.

Snapshots are processed oldest to newest. Every symbol found is grouped by
identity ``(name, kind)``; each group becomes a ``VersionChain`` holding the
first version plus every later version that differs from the last retained
one by more than whitespace.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from codelineage.core.errors import CodeLineageError
from codelineage.core.logging import get_logger
from codelineage.evolution.diff import is_whitespace_equivalent, line_diff
from codelineage.evolution.models import LineDiff, Snapshot, SymbolVersion, VersionChain
from codelineage.symbols.models import ExtractionQuery, Identity
from codelineage.symbols.service import SymbolService

log = get_logger(__name__)


def collect_versions(
    snapshots: Iterable[Snapshot],
    language: str,
    query: ExtractionQuery | None = None,
    service: SymbolService | None = None,
) -> dict[Identity, list[SymbolVersion]]:
    """Extract symbols from each snapshot and group the versions by identity.

    A snapshot whose extraction fails is logged and skipped. When one
    snapshot declares the same identity twice, the first occurrence wins.
    Groups keep first-seen order; versions within a group are chronological.
    """
    service = service or SymbolService.get()
    groups: dict[Identity, list[SymbolVersion]] = {}

    for snapshot in snapshots:
        try:
            symbols = service.extract(snapshot.content, language, query)
        except CodeLineageError as e:
            log.warning(
                "extraction_failed",
                commit=snapshot.short_id,
                path=snapshot.path,
                error=e.error_name,
                message=e.message,
            )
            continue
        except Exception as e:
            log.warning(
                "extraction_failed",
                commit=snapshot.short_id,
                path=snapshot.path,
                error=type(e).__name__,
                message=str(e),
            )
            continue

        seen: set[Identity] = set()
        for symbol in symbols:
            if symbol.identity in seen:
                continue
            seen.add(symbol.identity)
            version = SymbolVersion(
                snapshot=snapshot, symbol=symbol, segment=symbol.segment(snapshot.content)
            )
            groups.setdefault(symbol.identity, []).append(version)

    return groups


def build_chain(identity: Identity, versions: Sequence[SymbolVersion]) -> VersionChain:
    """Deduplicate chronological versions and attach a diff per retained step.

    The first version is always kept. Later versions are compared against the
    last *retained* version; whitespace-only differences are discarded.
    """
    if not versions:
        return VersionChain(identity=identity, versions=())

    retained: list[SymbolVersion] = [versions[0]]
    transitions: list[LineDiff] = []

    for version in versions[1:]:
        anchor = retained[-1]
        if is_whitespace_equivalent(anchor.segment, version.segment):
            log.debug(
                "version_discarded",
                symbol=identity[0],
                commit=version.snapshot.short_id,
                anchor=anchor.snapshot.short_id,
            )
            continue
        transitions.append(
            line_diff(
                anchor.segment,
                version.segment,
                from_commit=anchor.snapshot.commit_id,
                to_commit=version.snapshot.commit_id,
            )
        )
        retained.append(version)

    return VersionChain(identity=identity, versions=tuple(retained), transitions=tuple(transitions))


def build_chains(
    snapshots: Iterable[Snapshot],
    language: str,
    query: ExtractionQuery | None = None,
    service: SymbolService | None = None,
) -> list[VersionChain]:
    """Collect versions from snapshots and build one chain per identity."""
    groups = collect_versions(snapshots, language, query, service)
    return [build_chain(identity, versions) for identity, versions in groups.items()]
