"""Resolve import specifiers to project-relative file paths."""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import Callable, Optional, Union

from .alias_config import AliasConfig, match_path_alias
from .path_utils import to_posix

logger = logging.getLogger(__name__)

RESOLUTION_SUFFIXES = ("", ".ts", ".tsx", "/index.ts", "/index.tsx")

ExistsFn = Callable[[str], bool]


class ImportResolver:
    """Maps ``import ... from '<specifier>'`` to a file in the project.

    Relative specifiers resolve against the importing file's directory;
    anything else goes through the alias table. An unresolvable import
    (external package, excluded path) yields ``None`` rather than an error.

    Args:
        project_root: Absolute project root.
        alias_config: Optional ``baseUrl``/``paths`` mapping.
        exists: Existence oracle receiving an absolute path. Defaults to
            ``os.path.isfile``; tests inject an in-memory set instead.
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        alias_config: Optional[AliasConfig] = None,
        exists: Optional[ExistsFn] = None,
    ) -> None:
        self.project_root = str(project_root)
        self.alias_config = alias_config
        self._exists = exists or os.path.isfile

    def resolve(self, specifier: str, from_file: str) -> Optional[str]:
        if specifier.startswith("."):
            from_dir = posixpath.dirname(to_posix(from_file))
            base = posixpath.normpath(posixpath.join(from_dir, specifier))
            return self._probe(base)

        if self.alias_config is None:
            return None

        for candidate in match_path_alias(specifier, self.alias_config):
            resolved = self._probe(candidate)
            if resolved is not None:
                return resolved
        logger.debug("Unresolved import '%s' in %s", specifier, from_file)
        return None

    def _probe(self, base: str) -> Optional[str]:
        at_root = base in ("", ".")
        for suffix in RESOLUTION_SUFFIXES:
            if at_root:
                # The project root itself is a directory: only its index files qualify.
                if not suffix.startswith("/"):
                    continue
                candidate = suffix[1:]
            else:
                candidate = base + suffix
            if self._exists(os.path.join(self.project_root, candidate)):
                return candidate
        return None
