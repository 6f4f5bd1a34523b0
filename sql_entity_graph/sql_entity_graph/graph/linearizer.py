"""Topological linearization of a completed entity graph.

This is the only place the acyclicity invariant is checked.  Among nodes
with no ordering constraint between them the result is sorted by
``entity.sort_key()`` (kind, then qualified identifier), so the emitted
order is reproducible across runs.
"""

from __future__ import annotations

import heapq
import logging

import networkx as nx

from sql_entity_graph.errors import CyclicDependencyError
from sql_entity_graph.graph.store import entity_at
from sql_entity_graph.models import SqlGraphEntity
from sql_entity_graph.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


def _heap_item(graph: nx.MultiDiGraph, index: int) -> tuple[tuple, int]:
    return (entity_at(graph, index).sort_key(), index)


def _raise_for_cycle(graph: nx.MultiDiGraph, emitted: set[int]) -> None:
    remaining = sorted(
        (n for n in graph.nodes if n not in emitted),
        key=lambda n: _heap_item(graph, n),
    )
    subgraph = graph.subgraph(remaining)
    cycle_edges = nx.find_cycle(subgraph, source=remaining)
    cycle_nodes = [edge[0] for edge in cycle_edges]
    entity = entity_at(graph, cycle_nodes[0])
    logger.debug("Cycle detected through %d nodes starting at %s", len(cycle_nodes), entity.qualified_identifier)
    raise CyclicDependencyError(
        entity,
        [entity_at(graph, n).qualified_identifier for n in cycle_nodes],
    )


@profile_operation("graph.linearize")
def linearize_indices(graph: nx.MultiDiGraph) -> list[int]:
    """Return node indices so that every edge's source precedes its target.

    Uses Kahn's algorithm with a min-heap.  Parallel edges each count
    toward a node's in-degree.

    Raises
    ------
    CyclicDependencyError
        If the graph contains a cycle; carries the first cyclic entity.
    """
    in_degree = dict(graph.in_degree())
    heap = [_heap_item(graph, n) for n, d in in_degree.items() if d == 0]
    heapq.heapify(heap)

    order: list[int] = []
    while heap:
        _, node = heapq.heappop(heap)
        order.append(node)
        for _, successor in graph.out_edges(node):
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(heap, _heap_item(graph, successor))

    if len(order) != graph.number_of_nodes():
        _raise_for_cycle(graph, set(order))
    return order


def linearize(graph: nx.MultiDiGraph) -> list[SqlGraphEntity]:
    """Return entities in a dependency-respecting emission order."""
    return [entity_at(graph, index) for index in linearize_indices(graph)]
