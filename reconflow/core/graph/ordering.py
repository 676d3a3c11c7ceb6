"""Deterministic execution order of a dependency graph."""

from __future__ import annotations

import networkx as nx

from reconflow.core.errors import CycleError, ErrorCode, OrderingError
from reconflow.core.graph.dependency import DependencyGraph


def compute_order(graph: DependencyGraph) -> list[int]:
    """Return the task ids of ``graph`` in execution order.

    Every edge (A before B) puts A ahead of B. Where the graph leaves the
    order open, the smaller id goes first, so the result is the
    lexicographically smallest topological order and is identical on every
    call for an unchanged graph.

    Raises:
        CycleError: If the graph contains at least one cycle.
        OrderingError: If the graph library fails for any other reason.
    """
    nx_graph = graph.nx_graph
    try:
        return list(nx.lexicographical_topological_sort(nx_graph))
    except nx.NetworkXUnfeasible:
        raise CycleError(find_cycles(graph)) from None
    except (nx.NetworkXException, TypeError) as exc:
        # TypeError: node ids that cannot be compared with each other
        raise OrderingError(
            message='cannot compute task execution order',
            code=ErrorCode.GRAPH_ORDERING_FAILED,
            notes=[f'{type(exc).__name__}: {exc}'],
        ) from exc


def find_cycles(graph: DependencyGraph) -> list[list[int]]:
    """Sorted id lists, one per cyclic strongly connected component."""
    nx_graph = graph.nx_graph
    cycles: list[list[int]] = []
    for component in nx.strongly_connected_components(nx_graph):
        if len(component) > 1:
            cycles.append(sorted(component))
            continue
        (node,) = component
        if nx_graph.has_edge(node, node):
            cycles.append([node])
    return sorted(cycles)
