"""Configuration for graph storage, scanning, and per-project overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import toml

logger = logging.getLogger(__name__)

GRAPH_DIR = ".codegraph"
GRAPH_FILE = "graph.json"
CONFIG_FILE = "config.toml"
GRAPH_VERSION = "1.0.0"
UNKNOWN_COMMIT = "unknown"

SUPPORTED_EXTENSIONS = {".ts", ".tsx"}
EXCLUDED_SUFFIXES = (".test.ts", ".spec.ts", ".d.ts")
SKIP_DIRS = {"node_modules", "dist", "build", ".git", "coverage", GRAPH_DIR}

LOG_LEVEL = os.environ.get("DEPGRAPH_LOG_LEVEL", "WARNING").upper()


@dataclass
class ProjectConfig:
    """Settings read from ``.codegraph/config.toml`` under a project root."""

    exclude: List[str] = field(default_factory=list)
    alias_base_url: Optional[str] = None
    alias_paths: Dict[str, List[str]] = field(default_factory=dict)


def config_path(project_root: Path) -> Path:
    return project_root / GRAPH_DIR / CONFIG_FILE


def load_project_config(project_root: Path) -> ProjectConfig:
    """Load per-project overrides, falling back to defaults.

    A missing file is normal. An unreadable or malformed file is reported
    through the logger and ignored so that a bad config never blocks a build.
    """
    path = config_path(project_root)
    if not path.exists():
        return ProjectConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring invalid config %s: %s", path, exc)
        return ProjectConfig()

    scan = data.get("scan", {})
    aliases = data.get("aliases", {})
    paths = aliases.get("paths", {})
    return ProjectConfig(
        exclude=[str(p) for p in scan.get("exclude", [])],
        alias_base_url=aliases.get("base_url"),
        alias_paths={str(k): [str(v) for v in vals] for k, vals in paths.items()},
    )
