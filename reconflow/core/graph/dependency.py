"""Directed dependency graph over task ids."""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx

from reconflow.core.errors import UnknownTaskError


class DependencyGraph:
    """
    Append-only directed graph whose edges point from a task to the tasks
    that must run after it.

    Edges are stored in "must come before" direction (dependency -> dependent)
    so a topological sort of the graph is the execution order as-is.
    Cycles are accepted here; they are reported when an order is computed.
    """

    def __init__(self) -> None:
        self._graph: nx.DiGraph = nx.DiGraph()

    @property
    def nx_graph(self) -> nx.DiGraph:
        """Read-only view of the underlying networkx graph."""
        return self._graph.copy(as_view=True)

    def add_node(self, task_id: int) -> None:
        self._graph.add_node(task_id)

    def has_node(self, task_id: int) -> bool:
        return self._graph.has_node(task_id)

    def add_edges(self, before_ids: Iterable[int], after_id: int) -> None:
        """Add an edge from every id in ``before_ids`` to ``after_id``.

        All ids are checked before any edge is added. Existing edges are left
        as they are.

        Raises:
            UnknownTaskError: If ``after_id`` or any of ``before_ids`` has no node.
        """
        before = list(before_ids)
        if not self._graph.has_node(after_id):
            raise UnknownTaskError(
                after_id, f'cannot add dependencies to unknown task {after_id}'
            )
        for before_id in before:
            if not self._graph.has_node(before_id):
                raise UnknownTaskError(
                    before_id,
                    f'cannot make task {after_id} depend on unknown task {before_id}',
                )
        self._graph.add_edges_from((before_id, after_id) for before_id in before)

    def has_edge(self, before_id: int, after_id: int) -> bool:
        return self._graph.has_edge(before_id, after_id)

    def predecessors(self, task_id: int) -> list[int]:
        """Sorted ids that must run before ``task_id``."""
        if not self._graph.has_node(task_id):
            raise UnknownTaskError(task_id)
        return sorted(self._graph.predecessors(task_id))

    def edges(self) -> list[tuple[int, int]]:
        """All (before, after) pairs, sorted."""
        return sorted(self._graph.edges())

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, task_id: object) -> bool:
        return self._graph.has_node(task_id)
