"""Tier assignment — rank every node into an ordered tier.

Phases:
  1. Cycle exclusion: flow edges are admitted in input order; an edge that
     would close a cycle is left out of tiering.
  2. Longest-path leveling over the admitted DAG, visiting nodes in a
     topological order whose ties follow input order.
  3. Overrides: explicit category → tier map, then pinned node tiers.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

import networkx as nx

from causal_diagram.errors import GraphWarning, WarningCode
from causal_diagram.graph import GraphModel

logger = logging.getLogger(__name__)

# ─── Cycle Exclusion ──────────────────────────────────────────────────────────


def exclude_cycle_edges(graph: GraphModel) -> tuple[nx.DiGraph, list[tuple[str, str]]]:
    """Build the acyclic flow graph used for leveling.

    Flow edges are considered in input order. An edge is excluded when it is
    a self-loop or when its target can already reach its source through the
    edges admitted so far. Non-flow edges never take part.

    Returns a tuple of:
    - dag: DiGraph holding every node and the admitted flow edges
    - excluded: (source, target) pairs left out, in input order
    """
    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(node.id for node in graph.nodes)

    excluded: list[tuple[str, str]] = []
    for edge in graph.flow_edges():
        src, tgt = edge.source_id, edge.target_id
        if dag.has_edge(src, tgt):
            continue
        if src == tgt or nx.has_path(dag, tgt, src):
            excluded.append((src, tgt))
            continue
        dag.add_edge(src, tgt)

    return dag, excluded


def stable_topological_order(dag: nx.DiGraph, index: Mapping[str, int]) -> list[str]:
    """Topological order of ``dag``; among ready nodes, lower input index first."""
    return list(nx.lexicographical_topological_sort(dag, key=lambda n: index[n]))


# ─── Tier Assignment ──────────────────────────────────────────────────────────


@dataclass
class TierAssignment:
    """Result of tier assignment.

    Attributes:
        tiers: Maps node id → tier index (0 is the top band).
        tier_count: One more than the highest tier in use.
        excluded_edges: Flow edges left out because they would close a cycle.
        warnings: One ``cycle_edge`` warning per excluded edge.
    """

    tiers: dict[str, int]
    tier_count: int
    excluded_edges: list[tuple[str, str]] = field(default_factory=list)
    warnings: list[GraphWarning] = field(default_factory=list)

    @classmethod
    def assign(cls, graph: GraphModel, category_tiers: Mapping[str, int] | None = None) -> TierAssignment:
        """Assign a tier to every node of ``graph``.

        Derived tier = length of the longest admitted flow path ending at the
        node. When ``category_tiers`` is given, nodes whose category appears
        in it take the mapped tier instead. A node's own ``tier`` field wins
        over both.
        """
        index = graph.node_index()
        dag, excluded = exclude_cycle_edges(graph)

        warnings: list[GraphWarning] = []
        for src, tgt in excluded:
            message = f"flow edge {src}->{tgt} closes a cycle; excluded from tiering"
            logger.warning(message)
            warnings.append(GraphWarning(code=WarningCode.CYCLE_EDGE, message=message, subject=f"{src}->{tgt}"))

        tiers: dict[str, int] = {}
        for node_id in stable_topological_order(dag, index):
            preds = [tiers[p] for p in dag.predecessors(node_id)]
            tiers[node_id] = max(preds) + 1 if preds else 0

        for node in graph.nodes:
            if category_tiers is not None and node.category in category_tiers:
                tiers[node.id] = category_tiers[node.category]
            if node.tier is not None:
                tiers[node.id] = node.tier

        tier_count = (max(tiers.values()) + 1) if tiers else 0
        return cls(tiers=tiers, tier_count=tier_count, excluded_edges=excluded, warnings=warnings)

    def members(self, graph: GraphModel) -> list[list[str]]:
        """Node ids grouped by tier, each group in input order."""
        groups: list[list[str]] = [[] for _ in range(self.tier_count)]
        for node in graph.nodes:
            groups[self.tiers[node.id]].append(node.id)
        return groups
