"""Hover highlighting — a two-state controller over a graph.

States:
  IDLE      every element fully opaque, no edge labels
  FOCUSED   one node hovered; its neighbourhood stays lit, the rest dims

The controller only answers "how should this element be drawn"; it never
touches the graph or the layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from causal_diagram.graph import GraphEdge, GraphModel
from causal_diagram.style import DIMMED_ARROW

logger = logging.getLogger(__name__)

DIMMED_NODE_OPACITY = 0.3
DIMMED_EDGE_OPACITY = 0.15
HIGHLIGHT_WIDTH_SCALE = 1.3
HIGHLIGHT_EDGE_Z = 1000
HIGHLIGHT_NODE_Z = 1001


class HighlightState(str, Enum):
    IDLE = "idle"
    FOCUSED = "focused"


@dataclass(frozen=True)
class NodeEmphasis:
    opacity: float = 1.0
    z_index: int = 0


@dataclass(frozen=True)
class EdgeEmphasis:
    """Render-time adjustments for one edge.

    ``marker_color`` None means the arrow keeps the edge's own color.
    """

    opacity: float = 1.0
    width_scale: float = 1.0
    z_index: int = 0
    show_label: bool = False
    marker_color: str | None = None


IDLE_NODE = NodeEmphasis()
IDLE_EDGE = EdgeEmphasis()


class HighlightController:
    """Tracks which node (if any) is hovered and derives emphasis from it."""

    def __init__(self, graph: GraphModel | None = None) -> None:
        self._graph = graph if graph is not None else GraphModel()
        self._focused: str | None = None
        self._connected: frozenset[str] = frozenset()

    # ── State ──

    @property
    def state(self) -> HighlightState:
        return HighlightState.IDLE if self._focused is None else HighlightState.FOCUSED

    @property
    def focused(self) -> str | None:
        return self._focused

    @property
    def connected(self) -> frozenset[str]:
        """The focused node plus every node sharing an edge with it."""
        return self._connected

    # ── Events ──

    def set_graph(self, graph: GraphModel) -> None:
        """Swap the graph; a different model instance resets to IDLE."""
        if graph is self._graph:
            return
        self._graph = graph
        self._reset()

    def pointer_enter(self, node_id: str) -> None:
        if self._graph.node(node_id) is None:
            logger.debug("pointer_enter ignored: unknown node %r", node_id)
            return
        self._focused = node_id
        self._connected = frozenset({node_id} | self._graph.neighbors(node_id))

    def pointer_leave(self, node_id: str | None = None) -> None:
        """Return to IDLE.

        A leave naming a node other than the focused one arrives out of order
        (the pointer already entered another node) and is ignored.
        """
        if node_id is not None and node_id != self._focused:
            return
        self._reset()

    def _reset(self) -> None:
        self._focused = None
        self._connected = frozenset()

    # ── Derived view ──

    def node_emphasis(self, node_id: str) -> NodeEmphasis:
        if self._focused is None:
            return IDLE_NODE
        if node_id in self._connected:
            return NodeEmphasis(opacity=1.0, z_index=HIGHLIGHT_NODE_Z)
        return NodeEmphasis(opacity=DIMMED_NODE_OPACITY)

    def edge_emphasis(self, edge: GraphEdge) -> EdgeEmphasis:
        if self._focused is None:
            return IDLE_EDGE
        if edge.touches(self._focused):
            return EdgeEmphasis(
                width_scale=HIGHLIGHT_WIDTH_SCALE,
                z_index=HIGHLIGHT_EDGE_Z,
                show_label=edge.label is not None,
            )
        return EdgeEmphasis(opacity=DIMMED_EDGE_OPACITY, marker_color=DIMMED_ARROW)
