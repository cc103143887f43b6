"""Git history access for individual files."""

from codelineage.history.errors import (
    GitError,
    NotARepositoryError,
    PathOutsideRepositoryError,
    RefNotFoundError,
)
from codelineage.history.models import CommitRecord
from codelineage.history.provider import GitHistory

__all__ = [
    "CommitRecord",
    "GitError",
    "GitHistory",
    "NotARepositoryError",
    "PathOutsideRepositoryError",
    "RefNotFoundError",
]
