"""Persistence of graph snapshots at ``<root>/.codegraph/graph.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import GRAPH_DIR, GRAPH_FILE
from .errors import GitError, GraphLoadFailure
from .git_utils import GitClient
from .models import GraphData

logger = logging.getLogger(__name__)


class GraphStorage:
    """Reads and writes snapshots in the working tree or from git history."""

    def __init__(self, project_root: Union[str, Path], git_client: Optional[GitClient] = None) -> None:
        self.project_root = Path(project_root)
        self._git = git_client

    @property
    def git(self) -> GitClient:
        if self._git is None:
            self._git = GitClient(self.project_root)
        return self._git

    @property
    def relative_path(self) -> str:
        return f"{GRAPH_DIR}/{GRAPH_FILE}"

    @property
    def graph_path(self) -> Path:
        return self.project_root / GRAPH_DIR / GRAPH_FILE

    def exists(self, commit: Optional[str] = None) -> bool:
        if commit is None:
            return self.graph_path.exists()
        try:
            self.git.show_file(commit, self.relative_path)
            return True
        except GitError:
            return False

    def save(self, graph: GraphData) -> Path:
        self.graph_path.parent.mkdir(parents=True, exist_ok=True)
        self.graph_path.write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")
        logger.debug("Wrote graph with %d nodes to %s", len(graph.nodes), self.graph_path)
        return self.graph_path

    def load(self) -> GraphData:
        """Load the working-tree snapshot.

        Raises:
            GraphLoadFailure: if the file is missing or not a valid snapshot.
        """
        location = str(self.graph_path)
        if not self.graph_path.exists():
            raise GraphLoadFailure(
                f"Graph file not found at {location}. Run 'depgraph update' first.",
                location=location,
            )
        try:
            text = self.graph_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise GraphLoadFailure(f"Failed to read graph: {exc}", location=location) from exc
        return self._decode(text, location)

    def load_from_commit(self, commit: str) -> GraphData:
        """Load the snapshot committed at *commit*.

        Raises:
            GraphLoadFailure: if the commit has no snapshot or it is invalid.
        """
        location = f"{commit}:{self.relative_path}"
        try:
            text = self.git.show_file(commit, self.relative_path)
        except GitError as exc:
            raise GraphLoadFailure(
                f"Failed to load graph from commit {commit}: {exc}", location=location,
            ) from exc
        return self._decode(text, location)

    def metadata(self) -> Dict[str, Any]:
        graph = self.load()
        return {
            "version": graph.version,
            "commitHash": graph.commit_hash,
            "timestamp": graph.timestamp,
        }

    @staticmethod
    def _decode(text: str, location: str) -> GraphData:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GraphLoadFailure(f"Failed to load graph: {exc}", location=location) from exc
        if not isinstance(payload, dict):
            raise GraphLoadFailure("Failed to load graph: snapshot is not a JSON object", location=location)
        try:
            return GraphData.from_dict(payload)
        except (KeyError, TypeError, AttributeError) as exc:
            raise GraphLoadFailure(f"Failed to load graph: malformed snapshot ({exc})", location=location) from exc
