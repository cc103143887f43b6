"""Git history error types."""


class GitError(Exception):
    """Base error for repository access."""

    pass


class NotARepositoryError(GitError):
    """Path is not inside a git repository."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class RefNotFoundError(GitError):
    """Reference (branch, tag, commit) not found."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Reference not found: {ref}")
        self.ref = ref


class PathOutsideRepositoryError(GitError):
    """File path does not live under the repository working directory."""

    def __init__(self, path: str, root: str) -> None:
        super().__init__(f"Path {path} is outside repository {root}")
        self.path = path
        self.root = root
