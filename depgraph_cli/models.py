"""Core data models shared by the builder, traversal, query, diff and impact layers.

Field names are snake_case in Python; ``to_dict``/``from_dict`` translate to
the camelCase keys of the persisted ``graph.json`` snapshot and of the JSON
reports printed by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

NODE_TYPES = ("file", "class", "method", "function", "interface")
RELATIONSHIPS = ("imports", "extends", "implements", "calls")
RISK_LEVELS = ("LOW", "MEDIUM", "HIGH", "CRITICAL")


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


# ===================================================================
# Graph snapshot
# ===================================================================

@dataclass(frozen=True)
class Node:
    type: str
    file: Optional[str] = None
    line: Optional[int] = None
    end_line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "file": self.file,
            "line": self.line,
            "endLine": self.end_line,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            type=data["type"],
            file=data.get("file"),
            line=data.get("line"),
            end_line=data.get("endLine"),
        )


@dataclass(frozen=True)
class Edge:
    source: str
    relationship: str
    target: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.relationship, self.target)

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "relationship": self.relationship, "target": self.target}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(source=data["source"], relationship=data["relationship"], target=data["target"])


@dataclass(frozen=True)
class GraphData:
    """One immutable graph snapshot."""

    version: str
    commit_hash: str
    timestamp: str
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "commitHash": self.commit_hash,
            "timestamp": self.timestamp,
            "nodes": {entity_id: node.to_dict() for entity_id, node in self.nodes.items()},
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphData":
        return cls(
            version=data.get("version", ""),
            commit_hash=data.get("commitHash", ""),
            timestamp=data.get("timestamp", ""),
            nodes={entity_id: Node.from_dict(raw) for entity_id, raw in data.get("nodes", {}).items()},
            edges=[Edge.from_dict(raw) for raw in data.get("edges", [])],
        )


# ===================================================================
# Parsed-file facts (input to the builder)
# ===================================================================

@dataclass
class ParsedMethod:
    name: str
    line: int
    end_line: int
    calls: List[str] = field(default_factory=list)


@dataclass
class ParsedFunction:
    name: str
    line: int
    end_line: int
    calls: List[str] = field(default_factory=list)


@dataclass
class ParsedClass:
    name: str
    line: int
    end_line: int
    methods: List[ParsedMethod] = field(default_factory=list)
    extends: Optional[str] = None
    implements: Optional[List[str]] = None


@dataclass
class ParsedInterface:
    name: str
    line: int
    end_line: int


@dataclass
class ParsedImport:
    source: str
    is_type_only: bool = False


@dataclass
class ParsedFile:
    file_path: str
    classes: List[ParsedClass] = field(default_factory=list)
    functions: List[ParsedFunction] = field(default_factory=list)
    imports: List[ParsedImport] = field(default_factory=list)
    interfaces: List[ParsedInterface] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedFile":
        """Build from the camelCase fact structure emitted by external parsers."""
        return cls(
            file_path=data["filePath"],
            classes=[
                ParsedClass(
                    name=c["name"],
                    line=c["line"],
                    end_line=c["endLine"],
                    methods=[
                        ParsedMethod(m["name"], m["line"], m["endLine"], list(m.get("calls", [])))
                        for m in c.get("methods", [])
                    ],
                    extends=c.get("extends"),
                    implements=c.get("implements"),
                )
                for c in data.get("classes", [])
            ],
            functions=[
                ParsedFunction(f["name"], f["line"], f["endLine"], list(f.get("calls", [])))
                for f in data.get("functions", [])
            ],
            imports=[
                ParsedImport(i["from"], bool(i.get("isTypeOnly", False)))
                for i in data.get("imports", [])
            ],
            interfaces=[
                ParsedInterface(i["name"], i["line"], i["endLine"])
                for i in data.get("interfaces", [])
            ],
        )


# ===================================================================
# Builder output
# ===================================================================

@dataclass(frozen=True)
class OrphanedEdge:
    """An import that resolved to a path with no node in the graph."""

    source: str
    target: str
    reason: str = "Target file not parsed as node"


@dataclass
class BuildResult:
    graph: GraphData
    orphaned_edges: List[OrphanedEdge] = field(default_factory=list)

    def orphans_by_target(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for orphan in self.orphaned_edges:
            grouped.setdefault(orphan.target, []).append(orphan.source)
        return grouped


# ===================================================================
# Traversal / query
# ===================================================================

@dataclass
class TraversalResult:
    entity_id: str
    depth: int
    path: List[str]


@dataclass
class EntityWithMetadata:
    entity_id: str
    node: Node
    depth: int
    path: List[str]
    relationship: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "entityId": self.entity_id,
            "node": self.node.to_dict(),
            "depth": self.depth,
            "path": list(self.path),
            "relationship": self.relationship,
        })


@dataclass
class QueryResult:
    entity_id: str
    type: str
    file: Optional[str]
    line: Optional[int]
    entities: List[EntityWithMetadata]
    total_count: int
    file_count: int

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "entityId": self.entity_id,
            "type": self.type,
            "file": self.file,
            "line": self.line,
            "entities": [e.to_dict() for e in self.entities],
            "totalCount": self.total_count,
            "fileCount": self.file_count,
        })


# ===================================================================
# Diff
# ===================================================================

@dataclass
class ModifiedNode:
    entity_id: str
    before: Node
    after: Node
    changes: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
            "changes": list(self.changes),
        }


@dataclass
class DiffSummary:
    total_nodes_added: int = 0
    total_nodes_removed: int = 0
    total_nodes_modified: int = 0
    total_edges_added: int = 0
    total_edges_removed: int = 0

    def is_empty(self) -> bool:
        return not any((
            self.total_nodes_added,
            self.total_nodes_removed,
            self.total_nodes_modified,
            self.total_edges_added,
            self.total_edges_removed,
        ))

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalNodesAdded": self.total_nodes_added,
            "totalNodesRemoved": self.total_nodes_removed,
            "totalNodesModified": self.total_nodes_modified,
            "totalEdgesAdded": self.total_edges_added,
            "totalEdgesRemoved": self.total_edges_removed,
        }


@dataclass
class GraphDiff:
    commit1: str
    commit2: str
    added_nodes: List[str]
    removed_nodes: List[str]
    modified_nodes: List[ModifiedNode]
    added_edges: List[Edge]
    removed_edges: List[Edge]
    summary: DiffSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit1": self.commit1,
            "commit2": self.commit2,
            "addedNodes": list(self.added_nodes),
            "removedNodes": list(self.removed_nodes),
            "modifiedNodes": [m.to_dict() for m in self.modified_nodes],
            "addedEdges": [e.to_dict() for e in self.added_edges],
            "removedEdges": [e.to_dict() for e in self.removed_edges],
            "summary": self.summary.to_dict(),
        }


# ===================================================================
# Impact
# ===================================================================

@dataclass
class AffectedEntity:
    entity_id: str
    node: Node
    reason: str
    depth: int
    changed_by: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "node": self.node.to_dict(),
            "reason": self.reason,
            "depth": self.depth,
            "changedBy": self.changed_by,
        }


@dataclass
class ImpactMetrics:
    changed_files_count: int = 0
    affected_entities_count: int = 0
    affected_files_count: int = 0
    affected_by_type: Dict[str, int] = field(default_factory=lambda: {t: 0 for t in NODE_TYPES})
    max_depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changedFilesCount": self.changed_files_count,
            "affectedEntitiesCount": self.affected_entities_count,
            "affectedFilesCount": self.affected_files_count,
            "affectedByType": dict(self.affected_by_type),
            "maxDepth": self.max_depth,
        }


@dataclass
class ImpactReport:
    changed_files: List[str]
    affected_entities: List[AffectedEntity]
    metrics: ImpactMetrics
    risk_level: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changedFiles": list(self.changed_files),
            "affectedEntities": [a.to_dict() for a in self.affected_entities],
            "metrics": self.metrics.to_dict(),
            "riskLevel": self.risk_level,
        }
