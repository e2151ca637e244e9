"""Graph model — typed node/edge records for causal diagrams.

The model is pure data. ``GraphModel.build`` is the single ingestion point:
it enforces unique node ids and drops edges whose endpoints do not resolve,
recording a ``GraphWarning`` for every record it discards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

import networkx as nx

from causal_diagram.errors import GraphWarning, WarningCode

logger = logging.getLogger(__name__)

# ─── Enumerations ─────────────────────────────────────────────────────────────


class Strength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Effect(str, Enum):
    INCREASES = "increases"
    DECREASES = "decreases"
    MIXED = "mixed"


# Built-in categories. Graphs may use any other string as a category.
LEAF = "leaf"
CAUSE = "cause"
INTERMEDIATE = "intermediate"
EFFECT = "effect"

DEFAULT_CATEGORY = INTERMEDIATE

# Row used for each built-in category by the naive grid fallback.
DEFAULT_CATEGORY_TIERS: dict[str, int] = {LEAF: 0, CAUSE: 1, INTERMEDIATE: 2, EFFECT: 3}

# ─── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodeMetadata:
    """Descriptive fields carried by a node. Opaque to layout."""

    description: str | None = None
    confidence: float | None = None
    confidence_label: str | None = None
    details: str | None = None
    related_concepts: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphNode:
    """A factor, scenario or outcome in a causal diagram.

    ``tier`` pins the node to a tier and wins over derived or mapped tiers.
    ``manual_position`` is an ``(x, y)`` pair on a 0–100 scale.
    ``order`` fixes the node's slot within its tier.
    """

    id: str
    label: str
    category: str | None = None
    tier: int | None = None
    manual_position: tuple[float, float] | None = None
    order: int | None = None
    subgroup: str | None = None
    metadata: NodeMetadata = field(default_factory=NodeMetadata)

    @property
    def render_category(self) -> str:
        """Category used for styling; missing categories render as intermediate."""
        return self.category or DEFAULT_CATEGORY


@dataclass(frozen=True)
class GraphEdge:
    """A causal influence from ``source_id`` to ``target_id``.

    Non-flow edges (``flow=False``) are associative or bidirectional links:
    they are drawn but take no part in tiering.
    """

    source_id: str
    target_id: str
    strength: Strength | None = None
    confidence: Confidence | None = None
    effect: Effect | None = None
    label: str | None = None
    flow: bool = True

    @property
    def pair(self) -> tuple[str, str]:
        """The unordered endpoint pair, as a sorted tuple."""
        a, b = self.source_id, self.target_id
        return (a, b) if a <= b else (b, a)

    def touches(self, node_id: str) -> bool:
        return self.source_id == node_id or self.target_id == node_id

    def __str__(self) -> str:
        return f"{self.source_id}->{self.target_id}"


# ─── Graph Model ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GraphModel:
    """An immutable causal graph.

    Build instances with ``GraphModel.build`` so ids are unique and every edge
    resolves. Equality compares nodes and edges only; ``warnings`` describe
    what ingestion discarded.
    """

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    warnings: tuple[GraphWarning, ...] = field(default=(), compare=False)

    @classmethod
    def build(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge] = (),
        warnings: Iterable[GraphWarning] = (),
    ) -> GraphModel:
        """Validate records and construct a model.

        Duplicate node ids keep the first occurrence. Edges with an endpoint
        that is not a node of this graph are dropped, as are edges whose
        strength, confidence or effect is not a member of its enum (plain
        strings naming a member are converted).
        """
        collected: list[GraphWarning] = list(warnings)
        kept_nodes: list[GraphNode] = []
        seen: set[str] = set()
        for node in nodes:
            if node.id in seen:
                collected.append(_warn(WarningCode.DUPLICATE_NODE, f"duplicate node id {node.id!r} ignored", node.id))
                continue
            seen.add(node.id)
            kept_nodes.append(node)

        kept_edges: list[GraphEdge] = []
        for edge in edges:
            missing = [end for end in (edge.source_id, edge.target_id) if end not in seen]
            if missing:
                collected.append(
                    _warn(
                        WarningCode.DANGLING_EDGE,
                        f"edge {edge} dropped: unknown node id(s) {', '.join(repr(m) for m in missing)}",
                        str(edge),
                    )
                )
                continue
            try:
                edge = _normalize_attributes(edge)
            except ValueError as exc:
                collected.append(_warn(WarningCode.INVALID_EDGE, f"edge {edge} dropped: {exc}", str(edge)))
                continue
            kept_edges.append(edge)

        return cls(nodes=tuple(kept_nodes), edges=tuple(kept_edges), warnings=tuple(collected))

    @classmethod
    def from_records(cls, nodes: Iterable[dict], edges: Iterable[dict] = ()) -> GraphModel:
        """Construct a model from plain dicts using the document key format."""
        from causal_diagram.serializer import load_records

        return load_records(nodes, edges)

    # ── Lookup helpers ──

    def node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_index(self) -> dict[str, int]:
        """Map node id → position in input order."""
        return {node.id: i for i, node in enumerate(self.nodes)}

    def neighbors(self, node_id: str) -> set[str]:
        """Ids adjacent to ``node_id`` through an edge in either direction."""
        result: set[str] = set()
        for edge in self.edges:
            if edge.source_id == node_id:
                result.add(edge.target_id)
            elif edge.target_id == node_id:
                result.add(edge.source_id)
        return result

    def flow_edges(self) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.flow]

    def to_digraph(self, flow_only: bool = True) -> nx.DiGraph:
        """Build a networkx DiGraph with one node per record, in input order.

        Node attribute ``data`` holds the GraphNode. Parallel edges collapse
        into a single DiGraph edge whose ``edges`` attribute lists them all.
        """
        g: nx.DiGraph = nx.DiGraph()
        for node in self.nodes:
            g.add_node(node.id, data=node)
        for edge in self.edges:
            if flow_only and not edge.flow:
                continue
            if g.has_edge(edge.source_id, edge.target_id):
                g.edges[edge.source_id, edge.target_id]["edges"].append(edge)
            else:
                g.add_edge(edge.source_id, edge.target_id, edges=[edge])
        return g


_EDGE_ENUMS: tuple[tuple[str, type[Enum]], ...] = (
    ("strength", Strength),
    ("confidence", Confidence),
    ("effect", Effect),
)


def _normalize_attributes(edge: GraphEdge) -> GraphEdge:
    """Convert enum-valued edge attributes to their enum; ValueError if unknown."""
    changes = {}
    for name, enum_type in _EDGE_ENUMS:
        value = getattr(edge, name)
        if value is None or type(value) is enum_type:
            continue
        try:
            changes[name] = enum_type(value)
        except (ValueError, TypeError):
            raise ValueError(f"invalid {name} {value!r}") from None
    if not isinstance(edge.flow, bool):
        raise ValueError(f"invalid flow {edge.flow!r}")
    return replace(edge, **changes) if changes else edge


def _warn(code: WarningCode, message: str, subject: str | None = None) -> GraphWarning:
    logger.warning(message)
    return GraphWarning(code=code, message=message, subject=subject)
