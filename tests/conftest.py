"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local codelineage package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of codelineage modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("codelineage"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _fresh_symbol_service() -> None:
    """Each test gets its own parser instance and grammar cache."""
    from codelineage.symbols.service import SymbolService

    SymbolService.reset()


class RepoBuilder:
    """Writes files into a fresh repository and commits them with a ticking clock."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.repo = pygit2.init_repository(str(path), initial_head="main")
        self.repo.config["user.name"] = "Test User"
        self.repo.config["user.email"] = "test@example.com"
        self._clock = 1_700_000_000

    def commit(
        self,
        message: str,
        files: dict[str, str] | None = None,
        removed: tuple[str, ...] = (),
    ) -> str:
        """Stage ``files`` (path -> content), delete ``removed``, commit; return the id."""
        for name, content in (files or {}).items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.repo.index.add(name)
        for name in removed:
            (self.path / name).unlink()
            self.repo.index.remove(name)
        self.repo.index.write()
        tree = self.repo.index.write_tree()

        self._clock += 60
        sig = pygit2.Signature("Test User", "test@example.com", self._clock, 0)
        parents = [] if self.repo.head_is_unborn else [self.repo.head.target]
        oid = self.repo.create_commit("refs/heads/main", sig, sig, message, tree, parents)
        return str(oid)


@pytest.fixture
def git_repo(tmp_path: Path) -> RepoBuilder:
    """Empty repository (unborn HEAD on main) with a commit helper."""
    path = tmp_path / "repo"
    path.mkdir()
    return RepoBuilder(path)
