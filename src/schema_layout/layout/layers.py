"""Rank assignment for left-to-right layouts over possibly cyclic graphs.

Strongly connected components are collapsed (Tarjan) into a condensation
DAG, which is then ranked by longest path on a deterministic topological
order. Every member of a component shares the component's rank, so edges
between components always point from a lower rank to a higher or equal
one, and cycles end up side by side in a single layer.
"""

from __future__ import annotations

__all__ = ["DirectedEdge", "LayerRanks", "compute_layer_ranks"]

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import networkx as nx

logger = logging.getLogger(__name__)


class DirectedEdge(NamedTuple):
    """A dependency edge; plain ``(source, target)`` tuples work too."""

    source: str
    target: str


@dataclass
class LayerRanks:
    """Result of rank assignment.

    ``layers`` maps rank -> member ids sorted lexicographically, in
    ascending rank order. ``components`` lists each strongly connected
    component (members sorted) in topological order.
    """

    layer_by_node: dict[str, int] = field(default_factory=dict)
    layers: dict[int, list[str]] = field(default_factory=dict)
    components: list[list[str]] = field(default_factory=list)


def build_dependency_graph(
    node_ids: Sequence[str], edges: Iterable[tuple[str, str]]
) -> nx.DiGraph:
    """Build a DiGraph over ``node_ids`` only.

    Self-loops, duplicates and edges touching unknown ids are dropped.
    """
    G = nx.DiGraph()
    G.add_nodes_from(node_ids)
    for source, target in edges:
        if source == target or source not in G or target not in G:
            continue
        G.add_edge(source, target)
    return G


def compute_layer_ranks(
    node_ids: Sequence[str], edges: Iterable[tuple[str, str]]
) -> LayerRanks:
    """Assign each node a rank (integer X tier).

    Components become nodes of the condensation graph; Kahn's algorithm
    orders them, always releasing the ready component whose smallest
    member id sorts first. Ranks then follow the longest path:
    ``rank(target) = max(rank(target), rank(source) + 1)``.
    """
    G = build_dependency_graph(node_ids, edges)
    if not G:
        return LayerRanks()

    components = list(nx.strongly_connected_components(G))
    C = nx.condensation(G, scc=components)
    smallest_member = {c: min(C.nodes[c]["members"]) for c in C}

    topo_order = list(
        nx.lexicographical_topological_sort(C, key=lambda c: smallest_member[c])
    )

    ranks: dict[int, int] = {c: 0 for c in C}
    for comp in topo_order:
        for target in C.successors(comp):
            ranks[target] = max(ranks[target], ranks[comp] + 1)

    result = LayerRanks()
    grouped: dict[int, list[str]] = {}
    for comp in topo_order:
        members = sorted(C.nodes[comp]["members"])
        result.components.append(members)
        rank = ranks[comp]
        grouped.setdefault(rank, []).extend(members)
        for node_id in members:
            result.layer_by_node[node_id] = rank

    for rank in sorted(grouped):
        result.layers[rank] = sorted(grouped[rank])

    logger.debug(
        "Ranked %d nodes into %d components over %d layers",
        len(result.layer_by_node),
        len(result.components),
        len(result.layers),
    )
    return result
