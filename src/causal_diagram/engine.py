"""Diagram engine — owns one diagram's graph, layout and hover state.

``request_layout`` runs the layout pipeline as a coroutine that yields to the
event loop between phases. Every request takes a generation token; a result
is applied only if no newer request was made while it ran, so rapid graph
updates never leave an older layout on screen. Stale work is not cancelled,
it finishes and is dropped.

``render_scene`` combines the current layout with the highlight state into
the flat ``RenderedScene`` a renderer draws.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from causal_diagram.config import LayoutConfig
from causal_diagram.errors import GraphWarning
from causal_diagram.graph import GraphModel, GraphNode
from causal_diagram.highlight import HighlightController, HighlightState
from causal_diagram.layout import LayoutPass, LayoutResult, Point, TierBand, compute_layout
from causal_diagram.serializer import serialize
from causal_diagram.style import NodeStyle, node_style

logger = logging.getLogger(__name__)

NodeClickHandler = Callable[[GraphNode], None]

# ─── Scene ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SceneNode:
    id: str
    x: float
    y: float
    width: float
    height: float
    render_category: str
    label: str
    opacity: float
    z_index: int
    style: NodeStyle


@dataclass(frozen=True)
class SceneEdge:
    source: str
    target: str
    points: tuple[Point, ...]
    stroke_width: float
    color: str
    dash_pattern: str | None
    opacity: float
    label: str | None
    z_index: int
    marker_color: str


@dataclass(frozen=True)
class RenderedScene:
    """A fully resolved frame: geometry, styling and emphasis per element."""

    nodes: tuple[SceneNode, ...] = ()
    edges: tuple[SceneEdge, ...] = ()
    bands: tuple[TierBand, ...] = ()
    state: HighlightState = HighlightState.IDLE
    focused: str | None = None
    notice: str | None = None
    warnings: tuple[GraphWarning, ...] = field(default=(), compare=False)

    def node(self, node_id: str) -> SceneNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edges_between(self, source: str, target: str) -> list[SceneEdge]:
        return [e for e in self.edges if e.source == source and e.target == target]

    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over node boxes and edge control points."""
        xs: list[float] = []
        ys: list[float] = []
        for n in self.nodes:
            xs += [n.x, n.x + n.width]
            ys += [n.y, n.y + n.height]
        for e in self.edges:
            xs += [p.x for p in e.points]
            ys += [p.y for p in e.points]
        if not xs:
            return (0.0, 0.0, 0.0, 0.0)
        return (min(xs), min(ys), max(xs), max(ys))


# ─── Engine ───────────────────────────────────────────────────────────────────


class DiagramEngine:
    """Layout and interaction state for a single diagram instance.

    Args:
        config: Geometry settings; defaults to ``LayoutConfig()``.
        on_node_click: Called with the clicked ``GraphNode``.
    """

    def __init__(self, config: LayoutConfig | None = None, on_node_click: NodeClickHandler | None = None) -> None:
        self.config = config or LayoutConfig()
        self.on_node_click = on_node_click
        self._graph = GraphModel()
        self._layout: LayoutResult | None = None
        self._highlight = HighlightController(self._graph)
        self._generation = 0
        self._resolved = 0

    # ── State ──

    @property
    def graph(self) -> GraphModel:
        return self._graph

    @property
    def layout(self) -> LayoutResult | None:
        return self._layout

    @property
    def highlight(self) -> HighlightController:
        return self._highlight

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_computing(self) -> bool:
        """True while the most recent layout request has not finished."""
        return self._resolved < self._generation

    @property
    def warnings(self) -> list[GraphWarning]:
        return list(self._layout.warnings) if self._layout is not None else list(self._graph.warnings)

    def _apply(self, graph: GraphModel, result: LayoutResult) -> None:
        self._graph = graph
        self._layout = result
        self._highlight.set_graph(graph)

    # ── Layout ──

    def set_graph(self, graph: GraphModel) -> LayoutResult:
        """Lay out ``graph`` synchronously and make it current.

        Counts as a new generation, so any in-flight async request becomes stale.
        """
        self._generation += 1
        token = self._generation
        result = compute_layout(graph, self.config)
        self._apply(graph, result)
        self._resolved = token
        return result

    async def request_layout(self, graph: GraphModel) -> LayoutResult | None:
        """Lay out ``graph`` cooperatively.

        Returns the applied result, or None when a newer request superseded
        this one before it finished.
        """
        self._generation += 1
        token = self._generation
        try:
            layout_pass = LayoutPass(graph, self.config)
            for phase in layout_pass.steps():
                logger.debug("generation %d: %s done", token, phase)
                await asyncio.sleep(0)
            result = layout_pass.finished()

            if token != self._generation:
                logger.debug("discarding stale layout generation %d (latest %d)", token, self._generation)
                return None
            self._apply(graph, result)
            return result
        finally:
            if token == self._generation:
                self._resolved = token

    # ── Interaction ──

    def pointer_enter(self, node_id: str) -> None:
        self._highlight.pointer_enter(node_id)

    def pointer_leave(self, node_id: str | None = None) -> None:
        self._highlight.pointer_leave(node_id)

    def click(self, node_id: str) -> None:
        node = self._graph.node(node_id)
        if node is None:
            logger.debug("click ignored: unknown node %r", node_id)
            return
        if self.on_node_click is not None:
            self.on_node_click(node)

    def export_document(self) -> str:
        """The current graph as a YAML document."""
        return serialize(self._graph)

    # ── Scene ──

    def render_scene(self) -> RenderedScene:
        """Resolve the current layout and hover state into a drawable scene."""
        layout = self._layout
        if layout is None:
            return RenderedScene(warnings=tuple(self._graph.warnings))

        hl = self._highlight
        nodes = []
        for n in layout.nodes:
            emphasis = hl.node_emphasis(n.id)
            nodes.append(
                SceneNode(
                    id=n.id,
                    x=n.x,
                    y=n.y,
                    width=n.width,
                    height=n.height,
                    render_category=n.render_category,
                    label=n.label,
                    opacity=emphasis.opacity,
                    z_index=emphasis.z_index,
                    style=node_style(n.render_category),
                )
            )

        edges = []
        for routed in layout.edges:
            graph_edge = self._graph.edges[routed.index]
            style = routed.style
            emphasis = hl.edge_emphasis(graph_edge)
            edges.append(
                SceneEdge(
                    source=routed.source_id,
                    target=routed.target_id,
                    points=tuple(routed.points),
                    stroke_width=style.stroke_width * emphasis.width_scale,
                    color=style.color,
                    dash_pattern=style.dash_pattern,
                    opacity=emphasis.opacity,
                    label=routed.label if emphasis.show_label else None,
                    z_index=emphasis.z_index,
                    marker_color=emphasis.marker_color or style.color,
                )
            )

        return RenderedScene(
            nodes=tuple(nodes),
            edges=tuple(edges),
            bands=tuple(layout.bands),
            state=hl.state,
            focused=hl.focused,
            notice=layout.notice,
            warnings=tuple(layout.warnings),
        )
