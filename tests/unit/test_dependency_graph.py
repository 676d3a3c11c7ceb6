"""Unit tests for DependencyGraph."""

from __future__ import annotations

import networkx as nx
import pytest

from reconflow.core.errors import ErrorCode, UnknownTaskError
from reconflow.core.graph.dependency import DependencyGraph

pytestmark = pytest.mark.unit


@pytest.fixture
def graph() -> DependencyGraph:
    g = DependencyGraph()
    for node in (1, 2, 3):
        g.add_node(node)
    return g


class TestAddEdges:
    def test_edges_point_from_dependency_to_dependent(self, graph: DependencyGraph) -> None:
        graph.add_edges([2, 3], 1)
        assert graph.has_edge(2, 1)
        assert graph.has_edge(3, 1)
        assert not graph.has_edge(1, 2)

    def test_duplicate_edge_is_noop(self, graph: DependencyGraph) -> None:
        graph.add_edges([2], 1)
        graph.add_edges([2], 1)
        graph.add_edges([2, 2], 1)
        assert graph.edge_count == 1

    def test_unknown_target_adds_nothing(self, graph: DependencyGraph) -> None:
        with pytest.raises(UnknownTaskError) as exc_info:
            graph.add_edges([1, 2], 99)
        assert exc_info.value.task_id == 99
        assert exc_info.value.code == ErrorCode.TASK_UNKNOWN_ID
        assert graph.edge_count == 0
        assert 99 not in graph

    def test_unknown_dependency_adds_nothing(self, graph: DependencyGraph) -> None:
        """The valid dependency listed first must not be added either."""
        with pytest.raises(UnknownTaskError) as exc_info:
            graph.add_edges([2, 42, 3], 1)
        assert exc_info.value.task_id == 42
        assert graph.edge_count == 0
        assert graph.node_count == 3

    def test_self_edge_accepted(self, graph: DependencyGraph) -> None:
        graph.add_edges([1], 1)
        assert graph.has_edge(1, 1)

    def test_cycle_accepted_at_insertion(self, graph: DependencyGraph) -> None:
        graph.add_edges([1], 2)
        graph.add_edges([2], 1)
        assert graph.edge_count == 2


class TestIntrospection:
    def test_predecessors_sorted(self, graph: DependencyGraph) -> None:
        graph.add_edges([3, 2], 1)
        assert graph.predecessors(1) == [2, 3]
        assert graph.predecessors(2) == []

    def test_predecessors_unknown(self, graph: DependencyGraph) -> None:
        with pytest.raises(UnknownTaskError):
            graph.predecessors(7)

    def test_edges_sorted(self, graph: DependencyGraph) -> None:
        graph.add_edges([3], 1)
        graph.add_edges([1], 2)
        assert graph.edges() == [(1, 2), (3, 1)]

    def test_len_and_contains(self, graph: DependencyGraph) -> None:
        assert len(graph) == 3
        assert 2 in graph
        assert 4 not in graph

    def test_nx_graph_is_read_only(self, graph: DependencyGraph) -> None:
        view = graph.nx_graph
        with pytest.raises(nx.NetworkXError):
            view.add_edge(1, 2)
        assert graph.edge_count == 0
