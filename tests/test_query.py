"""Tests for GraphQuery lookups and dependency queries."""

import pytest

from depgraph_cli.errors import EntityNotFound
from depgraph_cli.models import Edge, GraphData, Node
from depgraph_cli.query import DEPENDENCIES, DEPENDENTS, GraphQuery


@pytest.fixture
def graph() -> GraphData:
    nodes = {
        "src/app.ts": Node("file"),
        "src/app.ts::App": Node("class", "src/app.ts", 3, 20),
        "src/app.ts::App::start": Node("method", "src/app.ts", 5, 10),
        "src/app.ts::App::stop": Node("method", "src/app.ts", 12, 18),
        "src/db.ts": Node("file"),
        "src/db.ts::connect": Node("function", "src/db.ts", 1, 4),
        "src/log.ts": Node("file"),
        "src/log.ts::ILogger": Node("interface", "src/log.ts", 1, 3),
    }
    edges = [
        Edge("src/app.ts", "imports", "src/db.ts"),
        Edge("src/db.ts", "imports", "src/log.ts"),
        Edge("src/app.ts::App::start", "calls", "src/app.ts::App::stop"),
    ]
    return GraphData("1.0.0", "abc", "2024-01-01T00:00:00Z", nodes, edges)


@pytest.fixture
def query() -> GraphQuery:
    return GraphQuery()


class TestLookups:
    def test_get_entity(self, query, graph):
        assert query.get_entity(graph, "src/db.ts::connect").type == "function"
        assert query.get_entity(graph, "nope") is None

    def test_entity_exists(self, query, graph):
        assert query.entity_exists(graph, "src/app.ts::App")
        assert not query.entity_exists(graph, "src/app.ts::Missing")

    def test_find_entities_by_file(self, query, graph):
        assert query.find_entities_by_file(graph, "src/app.ts") == [
            "src/app.ts",
            "src/app.ts::App",
            "src/app.ts::App::start",
            "src/app.ts::App::stop",
        ]
        assert query.find_entities_by_file(graph, "src/none.ts") == []

    def test_get_entities_by_type(self, query, graph):
        assert query.get_entities_by_type(graph, "method") == [
            "src/app.ts::App::start",
            "src/app.ts::App::stop",
        ]

    def test_get_edges_for_entity(self, query, graph):
        edges = query.get_edges_for_entity(graph, "src/db.ts")
        assert [e.key for e in edges] == [
            ("src/app.ts", "imports", "src/db.ts"),
            ("src/db.ts", "imports", "src/log.ts"),
        ]


class TestDependencyQueries:
    def test_direct_dependencies(self, query, graph):
        results = query.get_dependencies(graph, "src/app.ts")
        assert [(r.entity_id, r.depth, r.relationship) for r in results] == [
            ("src/db.ts", 1, "imports"),
        ]

    def test_transitive_dependencies(self, query, graph):
        results = query.get_dependencies(graph, "src/app.ts", transitive=True)
        assert [(r.entity_id, r.depth) for r in results] == [("src/db.ts", 1), ("src/log.ts", 2)]
        assert results[1].path == ["src/app.ts", "src/db.ts", "src/log.ts"]

    def test_dependents_carry_relationship(self, query, graph):
        results = query.get_dependents(graph, "src/app.ts::App::stop")
        assert [(r.entity_id, r.relationship) for r in results] == [
            ("src/app.ts::App::start", "calls"),
        ]
        assert results[0].node.line == 5

    def test_neighbours_without_nodes_are_dropped(self, query, graph):
        dangling = GraphData(
            graph.version,
            graph.commit_hash,
            graph.timestamp,
            dict(graph.nodes),
            graph.edges + [Edge("src/log.ts", "imports", "src/ghost.ts")],
        )
        ids = [r.entity_id for r in query.get_dependencies(dangling, "src/log.ts")]
        assert ids == []


class TestQuery:
    def test_dependencies_result(self, query, graph):
        result = query.query(graph, "src/app.ts::App::start", DEPENDENCIES)

        assert result.entity_id == "src/app.ts::App::start"
        assert result.type == "method"
        assert result.file == "src/app.ts"
        assert result.line == 5
        assert result.total_count == 1
        assert result.file_count == 1

    def test_file_nodes_do_not_count_as_files(self, query, graph):
        result = query.query(graph, "src/app.ts", DEPENDENCIES, transitive=True)
        assert result.total_count == 2
        assert result.file_count == 0

    def test_dependents_result(self, query, graph):
        result = query.query(graph, "src/log.ts", DEPENDENTS, transitive=True)
        assert [e.entity_id for e in result.entities] == ["src/db.ts", "src/app.ts"]

    def test_json_shape(self, query, graph):
        payload = query.query(graph, "src/app.ts::App::start").to_dict()
        assert payload["entityId"] == "src/app.ts::App::start"
        assert payload["totalCount"] == 1
        assert payload["entities"][0]["relationship"] == "calls"
        assert payload["entities"][0]["node"]["endLine"] == 18

    def test_missing_entity(self, query, graph):
        with pytest.raises(EntityNotFound):
            query.query(graph, "src/app.ts::Nope")

    def test_invalid_direction(self, query, graph):
        with pytest.raises(ValueError):
            query.query(graph, "src/app.ts", "sideways")
