"""Structural comparison of two graph snapshots."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Set, Tuple

from .models import DiffSummary, Edge, GraphData, GraphDiff, ModifiedNode, Node

COMPARED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("line", "line"),
    ("endLine", "end_line"),
    ("type", "type"),
    ("file", "file"),
)


class GraphDiffer:
    """Classifies nodes and edges as added, removed or modified.

    Node identity is the entity ID; edge identity is the
    ``(source, relationship, target)`` triple. Output lists are sorted so
    the result does not depend on input ordering.
    """

    def compare_graphs(self, graph1: GraphData, graph2: GraphData) -> GraphDiff:
        keys1 = set(graph1.nodes)
        keys2 = set(graph2.nodes)

        added_nodes = sorted(keys2 - keys1)
        removed_nodes = sorted(keys1 - keys2)
        modified_nodes = self._modified_nodes(graph1.nodes, graph2.nodes, sorted(keys1 & keys2))
        added_edges, removed_edges = self._compare_edges(graph1.edges, graph2.edges)

        summary = DiffSummary(
            total_nodes_added=len(added_nodes),
            total_nodes_removed=len(removed_nodes),
            total_nodes_modified=len(modified_nodes),
            total_edges_added=len(added_edges),
            total_edges_removed=len(removed_edges),
        )
        return GraphDiff(
            commit1=graph1.commit_hash,
            commit2=graph2.commit_hash,
            added_nodes=added_nodes,
            removed_nodes=removed_nodes,
            modified_nodes=modified_nodes,
            added_edges=added_edges,
            removed_edges=removed_edges,
            summary=summary,
        )

    def are_graphs_identical(self, graph1: GraphData, graph2: GraphData) -> bool:
        return self.compare_graphs(graph1, graph2).summary.is_empty()

    def get_stats(self, diff: GraphDiff) -> str:
        s = diff.summary
        return (
            f"Nodes:  +{s.total_nodes_added} / -{s.total_nodes_removed} / ~{s.total_nodes_modified}\n"
            f"Edges:  +{s.total_edges_added} / -{s.total_edges_removed}"
        )

    @staticmethod
    def detect_node_changes(before: Node, after: Node) -> List[str]:
        return [
            name
            for name, attr in COMPARED_FIELDS
            if getattr(before, attr) != getattr(after, attr)
        ]

    def _modified_nodes(
        self,
        nodes1: Dict[str, Node],
        nodes2: Dict[str, Node],
        common: List[str],
    ) -> List[ModifiedNode]:
        modified = []
        for entity_id in common:
            before, after = nodes1[entity_id], nodes2[entity_id]
            changes = self.detect_node_changes(before, after)
            if changes:
                modified.append(ModifiedNode(entity_id, before, after, changes))
        return modified

    @staticmethod
    def _compare_edges(edges1: List[Edge], edges2: List[Edge]) -> Tuple[List[Edge], List[Edge]]:
        keys1: Set[Tuple[str, str, str]] = {e.key for e in edges1}
        keys2: Set[Tuple[str, str, str]] = {e.key for e in edges2}
        added = [Edge(*key) for key in sorted(keys2 - keys1)]
        removed = [Edge(*key) for key in sorted(keys1 - keys2)]
        return added, removed


def filter_diff(diff: GraphDiff, nodes_only: bool = False, edges_only: bool = False) -> GraphDiff:
    """Drop the edge half (``nodes_only``) or node half (``edges_only``) of a diff."""
    result = diff
    if nodes_only:
        result = replace(
            result,
            added_edges=[],
            removed_edges=[],
            summary=replace(result.summary, total_edges_added=0, total_edges_removed=0),
        )
    if edges_only:
        result = replace(
            result,
            added_nodes=[],
            removed_nodes=[],
            modified_nodes=[],
            summary=replace(
                result.summary,
                total_nodes_added=0,
                total_nodes_removed=0,
                total_nodes_modified=0,
            ),
        )
    return result
