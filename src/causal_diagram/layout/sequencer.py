"""Within-tier ordering — crossing reduction with the barycenter heuristic.

Each tier starts in input order. A fixed number of sweeps alternate
top-down and bottom-up; every sweep re-sorts a tier by the mean index of
each node's neighbours in the adjacent, already-ordered tier. The best
ordering seen (by crossing count) is kept. The result is a reduced-crossing
ordering, not a crossing-free one.
"""

from __future__ import annotations

import math
from collections import defaultdict

from causal_diagram.graph import GraphEdge, GraphModel, GraphNode, Strength
from causal_diagram.layout.tiers import TierAssignment

SWEEP_ITERATIONS = 4

# Crossing weight per edge strength; an edge without a strength weighs 1.
CROSSING_WEIGHTS: dict[Strength, int] = {Strength.WEAK: 1, Strength.MEDIUM: 2, Strength.STRONG: 3}


def _adjacency(graph: GraphModel) -> dict[str, list[str]]:
    """Undirected neighbour lists (one entry per edge, parallel edges repeat)."""
    adj: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        if edge.source_id == edge.target_id:
            continue
        adj[edge.source_id].append(edge.target_id)
        adj[edge.target_id].append(edge.source_id)
    return adj


def barycenter(
    node_id: str,
    adjacency: dict[str, list[str]],
    neighbor_pos: dict[str, float],
    current: float,
) -> float:
    """Mean position of a node's neighbours in the adjacent tier.

    Returns ``current`` (the node's own index) when it has no neighbour
    there, so unconnected nodes hold their place.
    """
    positions = [neighbor_pos[nb] for nb in adjacency.get(node_id, ()) if nb in neighbor_pos]
    if not positions:
        return current
    return sum(positions) / len(positions)


def crossing_weight(edge: GraphEdge) -> int:
    """Importance of an edge when counting crossings; strong edges weigh most."""
    if edge.strength is None:
        return 1
    return CROSSING_WEIGHTS.get(edge.strength, 1)


def count_crossings(ordering: list[list[str]], graph: GraphModel) -> int:
    """Count weighted edge crossings between consecutive non-empty tiers.

    Edges are treated as undirected segments between the two tiers; edges
    spanning more than one tier or lying inside one tier are not counted.
    Each crossing adds the product of the two edges' ``crossing_weight``, so
    untyped edges count one per crossing and two strong edges count nine.
    """
    tiers = [layer for layer in ordering if layer]
    total = 0
    for upper, lower in zip(tiers, tiers[1:]):
        up_pos = {nid: i for i, nid in enumerate(upper)}
        low_pos = {nid: i for i, nid in enumerate(lower)}
        segments: list[tuple[int, int, int]] = []
        for edge in graph.edges:
            a, b = edge.source_id, edge.target_id
            if a in up_pos and b in low_pos:
                segments.append((up_pos[a], low_pos[b], crossing_weight(edge)))
            elif b in up_pos and a in low_pos:
                segments.append((up_pos[b], low_pos[a], crossing_weight(edge)))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (u1, l1, w1), (u2, l2, w2) = segments[i], segments[j]
                if (u1 < u2 and l1 > l2) or (u1 > u2 and l1 < l2):
                    total += w1 * w2
    return total


def _locked_order(layer: list[str], lookup: dict[str, GraphNode], index: dict[str, int]) -> list[str] | None:
    """Manual ordering for a tier, or None when no member sets ``order``."""
    nodes = {nid: lookup.get(nid) for nid in layer}
    if not any(n is not None and n.order is not None for n in nodes.values()):
        return None

    def key(nid: str) -> tuple[float, int]:
        node = nodes[nid]
        order = node.order if node is not None and node.order is not None else math.inf
        return (order, index[nid])

    return sorted(layer, key=key)


def order_tiers(
    graph: GraphModel,
    assignment: TierAssignment,
    iterations: int = SWEEP_ITERATIONS,
) -> list[list[str]]:
    """Order the nodes of every tier to reduce edge crossings.

    Returns a list[list[str]] — one inner list per tier index (empty tiers
    stay empty).
    """
    index = graph.node_index()
    ordering = assignment.members(graph)

    lookup = {node.id: node for node in graph.nodes}
    locked: set[int] = set()
    for tier_idx, layer in enumerate(ordering):
        manual = _locked_order(layer, lookup, index)
        if manual is not None:
            ordering[tier_idx] = manual
            locked.add(tier_idx)

    occupied = [i for i, layer in enumerate(ordering) if layer]
    adjacency = _adjacency(graph)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(best, graph)

    for sweep in range(iterations):
        top_down = sweep % 2 == 0
        pairs = list(zip(occupied[1:], occupied)) if top_down else list(zip(occupied[:-1], occupied[1:]))[::-1]

        for tier_idx, ref_idx in pairs:
            if tier_idx in locked:
                continue
            ref_pos = {nid: float(i) for i, nid in enumerate(ordering[ref_idx])}
            layer = ordering[tier_idx]
            keys = {nid: barycenter(nid, adjacency, ref_pos, float(i)) for i, nid in enumerate(layer)}
            layer.sort(key=lambda nid, k=keys: k[nid])

        crossings = count_crossings(ordering, graph)
        if crossings < best_crossings:
            best_crossings = crossings
            best = [list(layer) for layer in ordering]

    return best
