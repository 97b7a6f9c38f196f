"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages and
provides helpers for building semantic contexts from source snippets.
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local semchange package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of semchange modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("semchange"):
        del sys.modules[module_name]

from semchange.config.models import AnalyzerConfig  # noqa: E402
from semchange.context.builder import build_context  # noqa: E402
from semchange.context.models import SemanticContext  # noqa: E402
from semchange.parsing.treesitter import TreeSitterParser  # noqa: E402

ContextFactory = Callable[..., SemanticContext]


@pytest.fixture(scope="session")
def parser() -> TreeSitterParser:
    return TreeSitterParser()


@pytest.fixture
def make_context(parser: TreeSitterParser) -> ContextFactory:
    """Build a SemanticContext from source text.

    Usage: ``make_context("const a = 1;", path="a.ts", config=AnalyzerConfig())``
    """

    def _make(
        source: str, path: str = "example.ts", config: AnalyzerConfig | None = None
    ) -> SemanticContext:
        return build_context(parser.parse(path, source), config)

    return _make


@pytest.fixture
def run_analyzer(make_context: ContextFactory) -> Callable[..., list]:
    """Run one analyzer over a (base, head) pair of source snippets."""

    def _run(
        analyzer: Callable,
        base: str,
        head: str,
        path: str = "example.ts",
        config: AnalyzerConfig | None = None,
    ) -> list:
        config = config or AnalyzerConfig()
        return analyzer(make_context(base, path, config), make_context(head, path, config), config)

    return _run


def commit_all(repo: pygit2.Repository, message: str) -> str:
    """Stage every working-tree change and commit it on HEAD. Returns the commit id."""
    repo.index.add_all()
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com")
    parents = [] if repo.head_is_unborn else [repo.head.target]
    oid = repo.create_commit("HEAD", sig, sig, message, tree, parents)
    return str(oid)


@pytest.fixture
def temp_repo(tmp_path: Path) -> Generator[pygit2.Repository, None, None]:
    """Create a temporary git repository with an initial commit."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    (repo_path / "README.md").write_text("# Test Repo\n")
    commit_all(repo, "Initial commit")

    yield repo


@pytest.fixture
def commit() -> Callable[[pygit2.Repository, str], str]:
    """The :func:`commit_all` helper, for tests that build history."""
    return commit_all
