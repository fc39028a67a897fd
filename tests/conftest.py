"""Pytest configuration and fixtures for DepGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator, Iterable, List, Tuple

import git
import pytest

from depgraph_cli.models import Edge, GraphData, Node


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_project_copy(temp_dir: Path, sample_project_path: Path) -> Path:
    """Writable copy of the sample project."""
    target = temp_dir / "sample_project"
    shutil.copytree(sample_project_path, target)
    return target


@pytest.fixture
def make_graph() -> Callable[..., GraphData]:
    """Factory for small file-level graphs.

    ``make_graph(["A", "B"], [("A", "B")])`` gives two file nodes and one
    ``imports`` edge. Edges may also be ``(source, relationship, target)``.
    """

    def _make(
        nodes: Iterable[str],
        edges: Iterable[Tuple[str, ...]] = (),
        commit_hash: str = "test",
    ) -> GraphData:
        node_map = {entity_id: Node(type="file") for entity_id in nodes}
        edge_list: List[Edge] = []
        for edge in edges:
            if len(edge) == 2:
                edge_list.append(Edge(edge[0], "imports", edge[1]))
            else:
                edge_list.append(Edge(*edge))
        return GraphData(
            version="1.0.0",
            commit_hash=commit_hash,
            timestamp="2024-01-01T00:00:00Z",
            nodes=node_map,
            edges=edge_list,
        )

    return _make


@pytest.fixture
def exists_in() -> Callable[[Iterable[str]], Callable[[str], bool]]:
    """Build an existence oracle over project-relative paths.

    The resolver passes absolute paths joined onto the project root; the
    oracle strips the root prefix before checking membership.
    """

    def _factory(paths: Iterable[str], root: str = "/project") -> Callable[[str], bool]:
        known = {f"{root}/{p}" for p in paths}
        return lambda path: path.replace("\\", "/") in known

    return _factory


AUTHOR = git.Actor("Dev", "dev@example.com")


def commit_all(root: Path, message: str) -> str:
    """Stage every modified and untracked file under *root*, commit, and return the short hash."""
    repo = git.Repo(root)
    changed = [item.a_path for item in repo.index.diff(None)] + repo.untracked_files
    if changed:
        repo.index.add(changed)
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)
    return repo.git.rev_parse("--short", "HEAD")


@pytest.fixture
def commit() -> Callable[[Path, str], str]:
    """Commit all pending changes in a repository; returns the short hash."""
    return commit_all


@pytest.fixture
def git_project(sample_project_copy: Path) -> Path:
    """Sample project initialised as a git repository with one commit."""
    git.Repo.init(sample_project_copy)
    commit_all(sample_project_copy, "initial")
    return sample_project_copy
