"""Path-alias configuration (``tsconfig.json`` ``baseUrl`` / ``paths``).

Loading is memoised per project root in an :class:`AliasConfigCache`
instance; callers own the cache and can ``clear()`` it between runs.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import json5

from .config import ProjectConfig
from .path_utils import to_posix

logger = logging.getLogger(__name__)

TSCONFIG_FILE = "tsconfig.json"
WILDCARD = "*"


@dataclass
class AliasConfig:
    base_url: Optional[str] = None
    paths: Dict[str, List[str]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.base_url and not self.paths


def parse_tsconfig(text: str) -> Optional[AliasConfig]:
    """Extract alias settings from tsconfig text, or None if there are none.

    tsconfig files are JSONC in practice (comments, trailing commas, and
    often unquoted keys), so the text goes through ``json5``.

    Raises:
        ValueError: if the text does not parse, or ``baseUrl``/``paths``
            have the wrong shape.
    """
    data = json5.loads(text)
    options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return None

    base_url = options.get("baseUrl")
    if base_url is not None and not isinstance(base_url, str):
        raise ValueError(f"compilerOptions.baseUrl must be a string, got {type(base_url).__name__}")

    raw_paths = options.get("paths") or {}
    if not isinstance(raw_paths, dict):
        raise ValueError(f"compilerOptions.paths must be an object, got {type(raw_paths).__name__}")
    paths: Dict[str, List[str]] = {}
    for pattern, targets in raw_paths.items():
        if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
            raise ValueError(f"compilerOptions.paths['{pattern}'] must be a list of strings")
        paths[str(pattern)] = list(targets)

    alias = AliasConfig(base_url=base_url, paths=paths)
    return None if alias.is_empty() else alias


class AliasConfigCache:
    """Per-root memo of loaded alias configurations (``None`` included)."""

    def __init__(self) -> None:
        self._entries: Dict[str, Optional[AliasConfig]] = {}

    def __contains__(self, project_root: object) -> bool:
        return str(project_root) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def load(self, project_root: Path) -> Optional[AliasConfig]:
        key = str(project_root)
        if key in self._entries:
            return self._entries[key]

        config: Optional[AliasConfig] = None
        tsconfig = Path(project_root) / TSCONFIG_FILE
        if tsconfig.exists():
            try:
                config = parse_tsconfig(tsconfig.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring invalid %s: %s", tsconfig, exc)
                config = None

        self._entries[key] = config
        return config

    def clear(self) -> None:
        self._entries.clear()


def merge_project_overrides(
    base: Optional[AliasConfig],
    project_config: ProjectConfig,
) -> Optional[AliasConfig]:
    """Layer ``[aliases]`` from the project config over tsconfig settings."""
    if project_config.alias_base_url is None and not project_config.alias_paths:
        return base
    merged = AliasConfig(
        base_url=base.base_url if base else None,
        paths=dict(base.paths) if base else {},
    )
    if project_config.alias_base_url is not None:
        merged.base_url = project_config.alias_base_url
    merged.paths.update(project_config.alias_paths)
    return None if merged.is_empty() else merged


def specificity(pattern: str) -> int:
    return len(pattern.replace(WILDCARD, ""))


def match_pattern(import_path: str, pattern: str) -> Optional[str]:
    """Return the wildcard capture of *import_path* against *pattern*.

    Exact patterns capture the empty string on equality. None means no match.
    """
    if WILDCARD not in pattern:
        return "" if import_path == pattern else None

    prefix, _, suffix = pattern.partition(WILDCARD)
    if len(import_path) < len(prefix) + len(suffix):
        return None
    if import_path.startswith(prefix) and import_path.endswith(suffix):
        return import_path[len(prefix):len(import_path) - len(suffix)]
    return None


def match_path_alias(import_path: str, config: AliasConfig) -> List[str]:
    """Candidate paths (relative to the project root) for an aliased import.

    Only the most specific matching pattern contributes candidates, in the
    order its templates are listed.
    """
    if import_path.startswith(".") or not config.paths:
        return []

    ordered = sorted(config.paths, key=specificity, reverse=True)
    for pattern in ordered:
        capture = match_pattern(import_path, pattern)
        if capture is None:
            continue
        base = to_posix(config.base_url) if config.base_url else ""
        candidates = []
        for template in config.paths[pattern]:
            replaced = to_posix(template).replace(WILDCARD, capture, 1)
            candidates.append(posixpath.normpath(posixpath.join(base, replaced)))
        return candidates
    return []
