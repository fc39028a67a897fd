"""Tests for BFS/DFS traversal and cycle detection."""

import pytest

from depgraph_cli.errors import EntityNotFound
from depgraph_cli.models import Edge
from depgraph_cli.traversal import (
    build_forward_index,
    build_reverse_index,
    detect_cycles,
    traverse,
    traverse_bfs,
    traverse_dfs,
)


# A -> B -> C -> D
#   -> E -> F
CHAIN_NODES = ["A", "B", "C", "D", "E", "F"]
CHAIN_EDGES = [("A", "B"), ("A", "E"), ("B", "C"), ("C", "D"), ("E", "F")]


@pytest.fixture
def chain(make_graph):
    return make_graph(CHAIN_NODES, CHAIN_EDGES)


def _ids(results):
    return [r.entity_id for r in results]


def _depths(results):
    return {r.entity_id: r.depth for r in results}


class TestBfsDependents:
    def test_direct_only(self, chain):
        results = traverse_bfs(chain, "D", "reverse", transitive=False)
        assert _ids(results) == ["C"]
        assert results[0].depth == 1

    def test_transitive(self, chain):
        results = traverse_bfs(chain, "D", "reverse", transitive=True)
        assert _depths(results) == {"C": 1, "B": 2, "A": 3}

    def test_paths(self, chain):
        results = {r.entity_id: r.path for r in traverse_bfs(chain, "D", "reverse", True)}
        assert results["A"] == ["D", "C", "B", "A"]
        assert results["B"] == ["D", "C", "B"]
        assert results["C"] == ["D", "C"]

    def test_root_with_no_dependents(self, chain):
        assert traverse_bfs(chain, "A", "reverse", True) == []


class TestBfsDependencies:
    def test_direct_only(self, chain):
        results = traverse_bfs(chain, "A", "forward", transitive=False)
        assert _ids(results) == ["B", "E"]
        assert all(r.depth == 1 for r in results)

    def test_transitive(self, chain):
        results = traverse_bfs(chain, "A", "forward", transitive=True)
        assert _depths(results) == {"B": 1, "E": 1, "C": 2, "F": 2, "D": 3}

    def test_breadth_first_order(self, chain):
        results = traverse_bfs(chain, "A", "forward", transitive=True)
        depths = [r.depth for r in results]
        assert depths == sorted(depths)

    def test_first_arrival_depth_wins(self, make_graph):
        # A reaches D directly and via B -> C.
        graph = make_graph("ABCD", [("A", "B"), ("B", "C"), ("C", "D"), ("A", "D")])
        results = {r.entity_id: r for r in traverse_bfs(graph, "A", "forward", True)}
        assert results["D"].depth == 1
        assert results["D"].path == ["A", "D"]

    def test_parallel_edges_collapse(self, make_graph):
        graph = make_graph("AB", [("A", "imports", "B"), ("A", "calls", "B")])
        assert _ids(traverse_bfs(graph, "A", "forward", True)) == ["B"]


class TestTraversalEdgeCases:
    def test_missing_start_raises(self, chain):
        with pytest.raises(EntityNotFound) as exc_info:
            traverse_bfs(chain, "Z", "forward", True)
        assert str(exc_info.value) == "Entity 'Z' not found in graph"

        with pytest.raises(EntityNotFound):
            traverse_dfs(chain, "Z", "forward", True)

    def test_isolated_node(self, make_graph):
        graph = make_graph(["lonely", "A", "B"], [("A", "B")])
        assert traverse_bfs(graph, "lonely", "forward", True) == []
        assert traverse_bfs(graph, "lonely", "reverse", True) == []

    def test_cycle_terminates_and_excludes_start(self, make_graph):
        graph = make_graph("ABC", [("A", "B"), ("B", "C"), ("C", "A")])
        results = traverse_bfs(graph, "A", "forward", True)
        assert _depths(results) == {"B": 1, "C": 2}

    def test_self_loop(self, make_graph):
        graph = make_graph("AB", [("A", "A"), ("A", "B")])
        assert _ids(traverse_bfs(graph, "A", "forward", True)) == ["B"]

    def test_disconnected_component_unreachable(self, make_graph):
        graph = make_graph("ABXY", [("A", "B"), ("X", "Y")])
        assert _ids(traverse_bfs(graph, "A", "forward", True)) == ["B"]

    def test_edge_to_unknown_node_is_still_reported(self, make_graph):
        graph = make_graph("A", [("A", "ghost")])
        assert _ids(traverse_bfs(graph, "A", "forward", False)) == ["ghost"]

    def test_invalid_direction(self, chain):
        with pytest.raises(ValueError):
            traverse_bfs(chain, "A", "sideways")


class TestDfs:
    def test_same_set_as_bfs(self, chain):
        for start in CHAIN_NODES:
            for direction in ("forward", "reverse"):
                for transitive in (False, True):
                    bfs = set(_ids(traverse_bfs(chain, start, direction, transitive)))
                    dfs = set(_ids(traverse_dfs(chain, start, direction, transitive)))
                    assert bfs == dfs

    @pytest.mark.parametrize(
        "nodes,edges",
        [
            ("ABC", [("A", "B"), ("B", "C"), ("C", "A")]),
            ("AB", [("A", "A"), ("A", "B")]),
            ("ABXY", [("A", "B"), ("B", "A"), ("X", "Y"), ("Y", "X")]),
            ("ABCD", [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]),
        ],
        ids=["three-cycle", "self-loop", "disconnected-cycles", "diamond"],
    )
    def test_same_set_as_bfs_on_awkward_graphs(self, make_graph, nodes, edges):
        graph = make_graph(nodes, edges)
        for start in nodes:
            for direction in ("forward", "reverse"):
                for transitive in (False, True):
                    bfs = set(_ids(traverse_bfs(graph, start, direction, transitive)))
                    dfs = set(_ids(traverse_dfs(graph, start, direction, transitive)))
                    assert bfs == dfs

    def test_depth_first_order(self, chain):
        results = traverse_dfs(chain, "A", "forward", True)
        assert _ids(results) == ["B", "C", "D", "E", "F"]
        assert _depths(results) == {"B": 1, "C": 2, "D": 3, "E": 1, "F": 2}

    def test_cycle_terminates(self, make_graph):
        graph = make_graph("ABC", [("A", "B"), ("B", "C"), ("C", "A")])
        assert set(_ids(traverse_dfs(graph, "A", "forward", True))) == {"B", "C"}

    def test_deep_chain_does_not_recurse(self, make_graph):
        nodes = [f"n{i}" for i in range(5000)]
        edges = [(nodes[i], nodes[i + 1]) for i in range(len(nodes) - 1)]
        graph = make_graph(nodes, edges)
        assert len(traverse_dfs(graph, "n0", "forward", True)) == 4999

    def test_dispatch(self, chain):
        assert _ids(traverse(chain, "A", "forward", True, strategy="dfs")) == _ids(
            traverse_dfs(chain, "A", "forward", True)
        )
        assert _ids(traverse(chain, "A")) == ["B", "E"]
        with pytest.raises(ValueError):
            traverse(chain, "A", strategy="random")


class TestDetectCycles:
    def test_acyclic(self, chain):
        assert detect_cycles(chain) == []

    def test_three_node_cycle(self, make_graph):
        graph = make_graph("ABC", [("A", "B"), ("B", "C"), ("C", "A")])
        assert detect_cycles(graph) == [["A", "B", "C"]]

    def test_self_loop(self, make_graph):
        graph = make_graph("AB", [("A", "B"), ("B", "B")])
        assert detect_cycles(graph) == [["B"]]

    def test_cycle_in_second_component(self, make_graph):
        graph = make_graph("ABXY", [("A", "B"), ("X", "Y"), ("Y", "X")])
        assert detect_cycles(graph) == [["X", "Y"]]

    def test_cross_edge_is_not_a_cycle(self, make_graph):
        # Diamond: D is reached twice but never closes a loop.
        graph = make_graph("ABCD", [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        assert detect_cycles(graph) == []


class TestIndexes:
    def test_forward_and_reverse(self):
        edges = [Edge("A", "imports", "B"), Edge("A", "calls", "B"), Edge("C", "imports", "B")]
        assert build_forward_index(edges) == {"A": {"B"}, "C": {"B"}}
        assert build_reverse_index(edges) == {"B": {"A", "C"}}
