"""Git history data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import pygit2


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """One commit that changed a tracked file."""

    commit_id: str
    author: str
    email: str
    timestamp: datetime
    message: str
    path: str  # File path at this commit

    @property
    def short_id(self) -> str:
        return self.commit_id[:7]

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0].strip()

    @classmethod
    def from_pygit2(cls, commit: pygit2.Commit, path: str) -> CommitRecord:
        return cls(
            commit_id=str(commit.id),
            author=commit.author.name,
            email=commit.author.email,
            timestamp=datetime.fromtimestamp(commit.author.time, tz=UTC),
            message=commit.message,
            path=path,
        )
