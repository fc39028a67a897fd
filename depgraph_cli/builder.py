"""Two-pass graph construction from parsed-file facts.

Pass one creates every node for every file; pass two creates edges and
may only point at nodes created in pass one. Imports whose target resolves
to a path with no node are returned as orphaned edges instead of being
emitted, so the graph never holds a dangling edge.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .alias_config import AliasConfig
from .config import GRAPH_VERSION
from .entity_id import (
    format_class_id,
    format_file_id,
    format_function_id,
    format_interface_id,
    format_method_id,
)
from .models import BuildResult, Edge, GraphData, Node, OrphanedEdge, ParsedFile
from .resolver import ExistsFn, ImportResolver

THIS_PREFIX = "this."
MAX_LISTED_SOURCES = 3


# ===================================================================
# Symbol resolution strategies
# ===================================================================

class ResolutionStrategy(ABC):
    """Maps class-level names and call expressions to entity IDs."""

    @abstractmethod
    def resolve_class(self, name: str, current_file: str) -> Optional[str]:
        ...

    @abstractmethod
    def resolve_interface(self, name: str, current_file: str) -> Optional[str]:
        ...

    @abstractmethod
    def resolve_call(
        self,
        call: str,
        current_file: str,
        current_class: Optional[str] = None,
    ) -> Optional[str]:
        ...


class PartialResolutionStrategy(ResolutionStrategy):
    """Same-file function calls and ``this.<method>`` calls only.

    ``extends``/``implements`` names and qualified or cross-file calls are
    left unresolved.
    """

    def resolve_class(self, name: str, current_file: str) -> Optional[str]:
        return None

    def resolve_interface(self, name: str, current_file: str) -> Optional[str]:
        return None

    def resolve_call(
        self,
        call: str,
        current_file: str,
        current_class: Optional[str] = None,
    ) -> Optional[str]:
        if call.startswith(THIS_PREFIX) and current_class:
            method_name = call[len(THIS_PREFIX):]
            if method_name and "." not in method_name:
                return format_method_id(current_file, current_class, method_name)
            return None
        if "." not in call:
            return format_function_id(current_file, call)
        return None


# ===================================================================
# Builder
# ===================================================================

class GraphBuilder:
    """Builds :class:`GraphData` snapshots from parsed files."""

    def __init__(
        self,
        resolver: ImportResolver,
        strategy: Optional[ResolutionStrategy] = None,
    ) -> None:
        self.resolver = resolver
        self.strategy = strategy or PartialResolutionStrategy()

    def build(self, parsed_files: Iterable[ParsedFile], commit_hash: str) -> BuildResult:
        files = list(parsed_files)
        nodes: Dict[str, Node] = {}
        edges: List[Edge] = []
        orphans: List[OrphanedEdge] = []

        for parsed in files:
            self._add_file_nodes(parsed, nodes)

        for parsed in files:
            self._add_file_edges(parsed, nodes, edges, orphans)

        graph = GraphData(
            version=GRAPH_VERSION,
            commit_hash=commit_hash,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            nodes=nodes,
            edges=edges,
        )
        return BuildResult(graph=graph, orphaned_edges=orphans)

    # ------------------------------------------------------------------
    # Pass 1: nodes
    # ------------------------------------------------------------------

    @staticmethod
    def _add_file_nodes(parsed: ParsedFile, nodes: Dict[str, Node]) -> None:
        path = parsed.file_path
        nodes[format_file_id(path)] = Node(type="file")

        for cls in parsed.classes:
            nodes[format_class_id(path, cls.name)] = Node(
                type="class", file=path, line=cls.line, end_line=cls.end_line,
            )
            for method in cls.methods:
                nodes[format_method_id(path, cls.name, method.name)] = Node(
                    type="method", file=path, line=method.line, end_line=method.end_line,
                )

        for func in parsed.functions:
            nodes[format_function_id(path, func.name)] = Node(
                type="function", file=path, line=func.line, end_line=func.end_line,
            )

        for iface in parsed.interfaces:
            nodes[format_interface_id(path, iface.name)] = Node(
                type="interface", file=path, line=iface.line, end_line=iface.end_line,
            )

    # ------------------------------------------------------------------
    # Pass 2: edges
    # ------------------------------------------------------------------

    def _add_file_edges(
        self,
        parsed: ParsedFile,
        nodes: Dict[str, Node],
        edges: List[Edge],
        orphans: List[OrphanedEdge],
    ) -> None:
        path = parsed.file_path
        file_id = format_file_id(path)

        for imp in parsed.imports:
            if imp.is_type_only:
                continue
            target_path = self.resolver.resolve(imp.source, path)
            if target_path is None:
                continue
            target_id = format_file_id(target_path)
            if target_id in nodes:
                edges.append(Edge(file_id, "imports", target_id))
            else:
                orphans.append(OrphanedEdge(source=file_id, target=target_id))

        for cls in parsed.classes:
            class_id = format_class_id(path, cls.name)

            if cls.extends:
                self._link(edges, nodes, class_id, "extends",
                           self.strategy.resolve_class(cls.extends, path))

            for iface in cls.implements or []:
                self._link(edges, nodes, class_id, "implements",
                           self.strategy.resolve_interface(iface, path))

            for method in cls.methods:
                method_id = format_method_id(path, cls.name, method.name)
                for call in method.calls:
                    self._link(edges, nodes, method_id, "calls",
                               self.strategy.resolve_call(call, path, cls.name))

        for func in parsed.functions:
            function_id = format_function_id(path, func.name)
            for call in func.calls:
                self._link(edges, nodes, function_id, "calls",
                           self.strategy.resolve_call(call, path))

    @staticmethod
    def _link(
        edges: List[Edge],
        nodes: Dict[str, Node],
        source: str,
        relationship: str,
        target: Optional[str],
    ) -> None:
        # Unknown symbol targets (builtins, globals) are dropped, not orphaned.
        if target is not None and target in nodes:
            edges.append(Edge(source, relationship, target))


def build_graph(
    parsed_files: Iterable[ParsedFile],
    commit_hash: str,
    project_root: Union[str, Path],
    alias_config: Optional[AliasConfig] = None,
    exists: Optional[ExistsFn] = None,
    strategy: Optional[ResolutionStrategy] = None,
) -> BuildResult:
    """Convenience wrapper wiring an :class:`ImportResolver` into a builder."""
    resolver = ImportResolver(project_root, alias_config=alias_config, exists=exists)
    return GraphBuilder(resolver, strategy=strategy).build(parsed_files, commit_hash)


def format_orphan_warnings(result: BuildResult) -> List[str]:
    """Render orphaned edges as one grouped warning block."""
    grouped = result.orphans_by_target()
    if not grouped:
        return []

    lines = [f"Skipped {len(result.orphaned_edges)} edges to files that weren't parsed:"]
    for target, sources in grouped.items():
        listed = ", ".join(sources[:MAX_LISTED_SOURCES])
        extra = len(sources) - MAX_LISTED_SOURCES
        if extra > 0:
            listed += f" (+{extra} more)"
        lines.append(f"  • {target}")
        lines.append(f"    Referenced by: {listed}")
    lines.append("  Tip: these files may be excluded, outside the scan directory, or failed to parse.")
    return lines
