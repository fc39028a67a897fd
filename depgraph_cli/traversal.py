"""Breadth- and depth-first walks over a graph snapshot, plus cycle detection.

``forward`` follows edges from source to target (what an entity depends
on); ``reverse`` follows them backwards (what depends on the entity).
Every walk keeps its own visited set, so concurrent calls on the same
snapshot are safe and each walk is bounded by the node count.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Set

from .errors import EntityNotFound
from .models import Edge, GraphData, TraversalResult

FORWARD = "forward"
REVERSE = "reverse"
DIRECTIONS = (FORWARD, REVERSE)


def build_forward_index(edges: Iterable[Edge]) -> Dict[str, Set[str]]:
    """entity -> entities it depends on."""
    index: Dict[str, Set[str]] = {}
    for edge in edges:
        index.setdefault(edge.source, set()).add(edge.target)
    return index


def build_reverse_index(edges: Iterable[Edge]) -> Dict[str, Set[str]]:
    """entity -> entities that depend on it."""
    index: Dict[str, Set[str]] = {}
    for edge in edges:
        index.setdefault(edge.target, set()).add(edge.source)
    return index


def _adjacency(edges: Iterable[Edge], direction: str) -> Dict[str, List[str]]:
    # Ordered, deduplicated neighbour lists; parallel edges collapse.
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown traversal direction: {direction}")
    adjacency: Dict[str, Dict[str, None]] = {}
    for edge in edges:
        if direction == FORWARD:
            adjacency.setdefault(edge.source, {})[edge.target] = None
        else:
            adjacency.setdefault(edge.target, {})[edge.source] = None
    return {key: list(neighbours) for key, neighbours in adjacency.items()}


def traverse_bfs(
    graph: GraphData,
    start_id: str,
    direction: str = FORWARD,
    transitive: bool = False,
) -> List[TraversalResult]:
    """Breadth-first walk; depth and path are those of the first arrival.

    Raises:
        EntityNotFound: if *start_id* has no node.
    """
    if start_id not in graph.nodes:
        raise EntityNotFound(start_id)

    adjacency = _adjacency(graph.edges, direction)
    visited: Set[str] = set()
    results: List[TraversalResult] = []
    queue = deque([(start_id, 0, [start_id])])

    while queue:
        entity_id, depth, path = queue.popleft()
        if entity_id in visited:
            continue
        visited.add(entity_id)

        if entity_id != start_id:
            results.append(TraversalResult(entity_id=entity_id, depth=depth, path=path))

        if not transitive and depth > 0:
            continue

        for neighbour in adjacency.get(entity_id, []):
            if neighbour not in visited:
                queue.append((neighbour, depth + 1, path + [neighbour]))

    return results


def traverse_dfs(
    graph: GraphData,
    start_id: str,
    direction: str = FORWARD,
    transitive: bool = False,
) -> List[TraversalResult]:
    """Depth-first walk reaching the same entity set as :func:`traverse_bfs`.

    Depth and path reflect depth-first discovery order. Implemented with an
    explicit stack so deep graphs do not hit the recursion limit.

    Raises:
        EntityNotFound: if *start_id* has no node.
    """
    if start_id not in graph.nodes:
        raise EntityNotFound(start_id)

    adjacency = _adjacency(graph.edges, direction)
    visited: Set[str] = set()
    results: List[TraversalResult] = []
    stack = [(start_id, 0, [start_id])]

    while stack:
        entity_id, depth, path = stack.pop()
        if entity_id in visited:
            continue
        visited.add(entity_id)

        if entity_id != start_id:
            results.append(TraversalResult(entity_id=entity_id, depth=depth, path=path))

        if not transitive and depth > 0:
            continue

        # Reversed so the first neighbour is explored first.
        for neighbour in reversed(adjacency.get(entity_id, [])):
            if neighbour not in visited:
                stack.append((neighbour, depth + 1, path + [neighbour]))

    return results


def traverse(
    graph: GraphData,
    start_id: str,
    direction: str = FORWARD,
    transitive: bool = False,
    strategy: str = "bfs",
) -> List[TraversalResult]:
    if strategy == "bfs":
        return traverse_bfs(graph, start_id, direction, transitive)
    if strategy == "dfs":
        return traverse_dfs(graph, start_id, direction, transitive)
    raise ValueError(f"Unknown traversal strategy: {strategy}")


def detect_cycles(graph: GraphData) -> List[List[str]]:
    """Report each back edge found by a depth-first scan as one cycle.

    A cycle is the suffix of the current DFS path starting at the node the
    back edge returns to. Every node is used as a scan root if not yet
    visited, so disconnected components are covered.
    """
    adjacency = _adjacency(graph.edges, FORWARD)
    visited: Set[str] = set()
    on_stack: Set[str] = set()
    cycles: List[List[str]] = []

    for root in graph.nodes:
        if root in visited:
            continue

        visited.add(root)
        on_stack.add(root)
        path = [root]
        # Each frame holds an entity and an iterator over its neighbours.
        frames = [(root, iter(adjacency.get(root, [])))]

        while frames:
            entity_id, neighbours = frames[-1]
            advanced = False
            for neighbour in neighbours:
                if neighbour not in visited:
                    visited.add(neighbour)
                    on_stack.add(neighbour)
                    path.append(neighbour)
                    frames.append((neighbour, iter(adjacency.get(neighbour, []))))
                    advanced = True
                    break
                if neighbour in on_stack:
                    cycles.append(path[path.index(neighbour):])
            if not advanced:
                frames.pop()
                on_stack.discard(entity_id)
                path.pop()

    return cycles
