"""Dependency / dependent queries over a graph snapshot."""

from __future__ import annotations

from typing import List, Optional

from .errors import EntityNotFound
from .models import Edge, EntityWithMetadata, GraphData, Node, QueryResult
from .traversal import FORWARD, REVERSE, traverse_bfs

DEPENDENCIES = "dependencies"
DEPENDENTS = "dependents"


class GraphQuery:
    """Read-only lookups and enriched traversals on one snapshot."""

    def get_entity(self, graph: GraphData, entity_id: str) -> Optional[Node]:
        return graph.nodes.get(entity_id)

    def entity_exists(self, graph: GraphData, entity_id: str) -> bool:
        return entity_id in graph.nodes

    def find_entities_by_file(self, graph: GraphData, file_path: str) -> List[str]:
        """The file node itself plus every entity declared in it."""
        return [
            entity_id
            for entity_id, node in graph.nodes.items()
            if entity_id == file_path or node.file == file_path
        ]

    def get_entities_by_type(self, graph: GraphData, node_type: str) -> List[str]:
        return [entity_id for entity_id, node in graph.nodes.items() if node.type == node_type]

    def get_edges_for_entity(self, graph: GraphData, entity_id: str) -> List[Edge]:
        return [e for e in graph.edges if e.source == entity_id or e.target == entity_id]

    def get_dependencies(
        self,
        graph: GraphData,
        entity_id: str,
        transitive: bool = False,
    ) -> List[EntityWithMetadata]:
        results = traverse_bfs(graph, entity_id, FORWARD, transitive)
        return [
            EntityWithMetadata(
                entity_id=r.entity_id,
                node=graph.nodes[r.entity_id],
                depth=r.depth,
                path=r.path,
                relationship=self._relationship(graph, entity_id, r.entity_id),
            )
            for r in results
            if r.entity_id in graph.nodes
        ]

    def get_dependents(
        self,
        graph: GraphData,
        entity_id: str,
        transitive: bool = False,
    ) -> List[EntityWithMetadata]:
        results = traverse_bfs(graph, entity_id, REVERSE, transitive)
        return [
            EntityWithMetadata(
                entity_id=r.entity_id,
                node=graph.nodes[r.entity_id],
                depth=r.depth,
                path=r.path,
                relationship=self._relationship(graph, r.entity_id, entity_id),
            )
            for r in results
            if r.entity_id in graph.nodes
        ]

    def query(
        self,
        graph: GraphData,
        entity_id: str,
        direction: str = DEPENDENCIES,
        transitive: bool = False,
    ) -> QueryResult:
        """Run a dependency or dependent query and summarise it.

        Raises:
            EntityNotFound: if *entity_id* is not in the graph.
            ValueError: for an unknown *direction*.
        """
        entity = self.get_entity(graph, entity_id)
        if entity is None:
            raise EntityNotFound(entity_id)

        if direction == DEPENDENCIES:
            entities = self.get_dependencies(graph, entity_id, transitive)
        elif direction == DEPENDENTS:
            entities = self.get_dependents(graph, entity_id, transitive)
        else:
            raise ValueError(f"Unknown query direction: {direction}")

        files = {e.node.file for e in entities if e.node.file}
        return QueryResult(
            entity_id=entity_id,
            type=entity.type,
            file=entity.file,
            line=entity.line,
            entities=entities,
            total_count=len(entities),
            file_count=len(files),
        )

    @staticmethod
    def _relationship(graph: GraphData, source_id: str, target_id: str) -> Optional[str]:
        for edge in graph.edges:
            if edge.source == source_id and edge.target == target_id:
                return edge.relationship
        return None
