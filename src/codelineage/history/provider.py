"""Git history provider - per-file commit history and content via pygit2."""

from __future__ import annotations

from pathlib import Path

import pygit2

from codelineage.core.errors import MissingSnapshotError
from codelineage.core.logging import get_logger
from codelineage.evolution.models import Snapshot
from codelineage.history.errors import (
    NotARepositoryError,
    PathOutsideRepositoryError,
    RefNotFoundError,
)
from codelineage.history.models import CommitRecord

log = get_logger(__name__)


def _entry_id(tree: pygit2.Tree, path: str) -> pygit2.Oid | None:
    try:
        return tree[path].id
    except KeyError:
        return None


class GitHistory:
    """Read-only view of one repository's history for individual files."""

    def __init__(self, repo_path: Path | str) -> None:
        self._path = Path(repo_path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError(str(self._path)) from e

    @classmethod
    def discover(cls, start: Path | str) -> GitHistory:
        """Open the repository containing ``start``."""
        found = pygit2.discover_repository(str(start))
        if found is None:
            raise NotARepositoryError(str(start))
        return cls(found)

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def root(self) -> Path:
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    def relpath(self, path: Path | str) -> str:
        """Repository-relative POSIX path for a working-tree file."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        root = self.root.resolve()
        try:
            return candidate.resolve().relative_to(root).as_posix()
        except ValueError as e:
            raise PathOutsideRepositoryError(str(path), str(root)) from e

    def _resolve_commit(self, ref: str) -> pygit2.Commit:
        try:
            obj, _ = self._repo.resolve_refish(ref)
        except (pygit2.GitError, KeyError) as e:
            raise RefNotFoundError(ref) from e
        if not isinstance(obj, pygit2.Commit):
            obj = obj.peel(pygit2.Commit)
        return obj

    def _rename_source(self, parent: pygit2.Commit, commit: pygit2.Commit, path: str) -> str | None:
        diff = self._repo.diff(parent, commit)
        diff.find_similar()
        for delta in diff.deltas:
            if delta.status == pygit2.GIT_DELTA_RENAMED and delta.new_file.path == path:
                return delta.old_file.path
        return None

    def history(self, path: str, ref: str = "HEAD", limit: int | None = None) -> list[CommitRecord]:
        """Commits that changed ``path``, newest first.

        Walks first parents only. A commit is listed when the file's blob
        differs from its first parent's. When the file is absent from the
        parent, a rename source is looked up and followed; otherwise the
        walk stops at the commit that added the file.
        """
        if self._repo.head_is_unborn and ref == "HEAD":
            return []
        start = self._resolve_commit(ref)

        walker = self._repo.walk(start.id, pygit2.GIT_SORT_TIME)
        walker.simplify_first_parent()

        records: list[CommitRecord] = []
        current = path
        for commit in walker:
            entry = _entry_id(commit.tree, current)
            if entry is None:
                break

            parent = commit.parents[0] if commit.parents else None
            if parent is None:
                records.append(CommitRecord.from_pygit2(commit, current))
                break

            parent_entry = _entry_id(parent.tree, current)
            if parent_entry == entry:
                continue

            records.append(CommitRecord.from_pygit2(commit, current))
            if limit is not None and len(records) >= limit:
                break

            if parent_entry is None:
                source = self._rename_source(parent, commit, current)
                if source is None:
                    break
                log.debug("rename_followed", commit=str(commit.id)[:7], old=source, new=current)
                current = source

        return records

    def content_at(self, commit_id: str, path: str) -> str:
        """File text at a commit. Raises MissingSnapshotError when unavailable."""
        try:
            commit = self._resolve_commit(commit_id)
            blob = self._repo[commit.tree[path].id]
        except (RefNotFoundError, KeyError, ValueError) as e:
            raise MissingSnapshotError.at(commit_id, path) from e
        if not isinstance(blob, pygit2.Blob):
            raise MissingSnapshotError.at(commit_id, path)
        return blob.data.decode("utf-8", errors="replace")

    def snapshots(self, path: str, ref: str = "HEAD", limit: int | None = None) -> list[Snapshot]:
        """Chronological snapshots of ``path``; unreadable ones are logged and skipped."""
        snapshots: list[Snapshot] = []
        for record in reversed(self.history(path, ref=ref, limit=limit)):
            try:
                content = self.content_at(record.commit_id, record.path)
            except MissingSnapshotError as e:
                log.warning(
                    "snapshot_missing", commit=record.short_id, path=record.path, error=e.message
                )
                continue
            snapshots.append(
                Snapshot(
                    commit_id=record.commit_id,
                    author=record.author,
                    timestamp=record.timestamp,
                    message=record.summary,
                    content=content,
                    path=record.path,
                )
            )
        return snapshots
