"""Git access for commit metadata, changed files and historical snapshots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import git

from .config import SUPPORTED_EXTENSIONS, UNKNOWN_COMMIT
from .errors import GitError
from .path_utils import normalize_path

logger = logging.getLogger(__name__)


class GitClient:
    """Thin wrapper over GitPython scoped to one project root.

    The root may be a subdirectory of the repository; paths returned by
    :meth:`changed_files` are relative to the project root.
    """

    def __init__(self, project_root: Union[str, Path]) -> None:
        self.project_root = Path(project_root).resolve()
        self._repo: Optional[git.Repo] = None

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            try:
                self._repo = git.Repo(self.project_root, search_parent_directories=True)
            except (git.InvalidGitRepositoryError, git.NoSuchPathError) as exc:
                raise GitError(f"Not a git repository: {self.project_root}") from exc
        return self._repo

    def current_commit_hash(self) -> str:
        """Short hash of HEAD, or ``"unknown"`` when it cannot be determined."""
        try:
            return self.repo.git.rev_parse("--short", "HEAD").strip()
        except (GitError, git.GitCommandError) as exc:
            logger.warning("Could not read commit hash: %s", exc)
            return UNKNOWN_COMMIT

    def current_branch(self) -> str:
        try:
            return self.repo.git.rev_parse("--abbrev-ref", "HEAD").strip()
        except (GitError, git.GitCommandError) as exc:
            logger.warning("Could not read current branch: %s", exc)
            return "main"

    def commit_exists(self, ref: str) -> bool:
        try:
            self.repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}")
            return True
        except (GitError, git.GitCommandError):
            return False

    def changed_files(self, base: str = "HEAD", target: Optional[str] = None) -> List[str]:
        """TypeScript files changed between *base* and *target* (or the working tree).

        Raises:
            GitError: if the diff cannot be computed.
        """
        args = ["--name-only", base] + ([target] if target else [])
        try:
            output = self.repo.git.diff(*args)
        except git.GitCommandError as exc:
            raise GitError(f"Failed to list changed files against {base}: {exc}") from exc

        work_tree = Path(self.repo.working_tree_dir)
        changed: List[str] = []
        for line in output.splitlines():
            line = line.strip()
            if not line or Path(line).suffix not in SUPPORTED_EXTENSIONS:
                continue
            rel = normalize_path(work_tree / line, self.project_root)
            if rel.startswith(".."):
                continue
            changed.append(rel)
        return changed

    def show_file(self, ref: str, rel_path: str) -> str:
        """Content of a project-relative file as it was at *ref*.

        Raises:
            GitError: if the file does not exist at that commit.
        """
        repo_rel = normalize_path(self.project_root / rel_path, self.repo.working_tree_dir)
        try:
            return self.repo.git.show(f"{ref}:{repo_rel}")
        except git.GitCommandError as exc:
            raise GitError(f"{rel_path} not found in commit {ref}") from exc
