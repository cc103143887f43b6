"""Shared builders for evolution tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from codelineage.evolution.models import Snapshot, SymbolVersion
from codelineage.symbols.models import Symbol, SymbolKind

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def _snapshot(index: int, content: str, path: str = "src/app.js") -> Snapshot:
    return Snapshot(
        commit_id=f"{index:040x}",
        author="Test User",
        timestamp=BASE_TIME + timedelta(days=index),
        message=f"change {index}",
        content=content,
        path=path,
    )


def _version(index: int, segment: str, name: str = "f") -> SymbolVersion:
    line_count = max(1, len(segment.splitlines()))
    symbol = Symbol(name, SymbolKind.FUNCTION, 1, line_count, "javascript")
    return SymbolVersion(snapshot=_snapshot(index, segment), symbol=symbol, segment=segment)


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    """make_snapshot(index, content, path="src/app.js")"""
    return _snapshot


@pytest.fixture
def make_version() -> Callable[..., SymbolVersion]:
    """make_version(index, segment, name="f") - a function version spanning the segment."""
    return _version
