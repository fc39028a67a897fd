"""Path normalisation and exclusion rules for project files."""

from __future__ import annotations

import fnmatch
import os
import posixpath
from pathlib import Path
from typing import Iterable, Union

from .config import EXCLUDED_SUFFIXES, SKIP_DIRS

PathLike = Union[str, Path]


def to_posix(path: str) -> str:
    return path.replace("\\", "/")


def normalize_path(absolute_path: PathLike, project_root: PathLike) -> str:
    """Return *absolute_path* relative to *project_root* with forward slashes."""
    relative = os.path.relpath(str(absolute_path), str(project_root))
    return posixpath.normpath(to_posix(relative))


def should_exclude_path(file_path: PathLike, extra: Iterable[str] = ()) -> bool:
    """True for build output, dependencies, tests and declaration files.

    *extra* holds additional path fragments or glob patterns from the
    project config.
    """
    posix = to_posix(str(file_path))
    parts = posix.split("/")
    if any(part in SKIP_DIRS for part in parts):
        return True
    if posix.endswith(EXCLUDED_SUFFIXES):
        return True
    for pattern in extra:
        if any(ch in pattern for ch in "*?["):
            if fnmatch.fnmatch(posix, pattern) or fnmatch.fnmatch(parts[-1], pattern):
                return True
        elif pattern in parts:
            return True
    return False
