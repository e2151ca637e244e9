"""Tests for layout/routing.py — bundle offsets, box clipping and curve control points."""

from __future__ import annotations

import pytest

from causal_diagram.config import LayoutConfig
from causal_diagram.graph import Confidence, Effect, GraphEdge, GraphModel, GraphNode, Strength
from causal_diagram.layout.routing import bundle_offsets, clip_to_box, route_edge, route_edges
from causal_diagram.layout.types import LayoutNode, Point
from causal_diagram.style import WARM

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_layout_node(node_id: str, x: float, y: float, width: float = 100.0, height: float = 40.0) -> LayoutNode:
    return LayoutNode(
        id=node_id,
        label=node_id,
        tier=0,
        order=0,
        x=x,
        y=y,
        width=width,
        height=height,
        render_category="intermediate",
    )


def assert_point(p: Point, x: float, y: float) -> None:
    assert (p.x, p.y) == (pytest.approx(x), pytest.approx(y))


def stacked_pair() -> list[LayoutNode]:
    """'a' above 'b': centres (50, 20) and (50, 220)."""
    return [make_layout_node("a", 0.0, 0.0), make_layout_node("b", 0.0, 200.0)]


def make_graph(*edges: GraphEdge) -> GraphModel:
    return GraphModel.build([GraphNode("a", "a"), GraphNode("b", "b"), GraphNode("c", "c")], edges)


# ─── bundle_offsets Tests ─────────────────────────────────────────────────────


class TestBundleOffsets:
    def test_single_edge_zero(self):
        """A lone edge has offset 0."""
        assert bundle_offsets(1, 25.0) == [0.0]

    def test_pair(self):
        """Two edges — ±spacing/2."""
        assert bundle_offsets(2, 25.0) == [-12.5, 12.5]

    def test_triple(self):
        """Three edges — -spacing, 0, +spacing."""
        assert bundle_offsets(3, 25.0) == [-25.0, 0.0, 25.0]

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 8])
    def test_symmetric(self, count: int):
        """Offsets sum to zero and mirror around the middle."""
        offsets = bundle_offsets(count, 25.0)
        assert sum(offsets) == pytest.approx(0.0)
        assert offsets == [-o for o in reversed(offsets)]


# ─── clip_to_box Tests ────────────────────────────────────────────────────────


class TestClipToBox:
    def test_horizontal(self):
        """Ray to the right leaves through the right side."""
        assert clip_to_box(Point(0, 0), Point(100, 0), 50, 20) == Point(50, 0)

    def test_vertical(self):
        """Ray downward leaves through the bottom."""
        assert clip_to_box(Point(0, 0), Point(0, 100), 50, 20) == Point(0, 20)

    def test_diagonal_hits_nearer_side(self):
        """A 45° ray on a wide box leaves through the bottom, not the side."""
        assert clip_to_box(Point(0, 0), Point(100, 100), 50, 20) == Point(20, 20)

    def test_coincident_points(self):
        """Same point — the centre is returned."""
        assert clip_to_box(Point(5, 5), Point(5, 5), 50, 20) == Point(5, 5)


# ─── route_edge Tests ─────────────────────────────────────────────────────────


class TestRouteEdge:
    def test_endpoints_clipped_with_margin(self):
        """a above b — start at a's bottom + 6, end at b's top - 6."""
        a, b = stacked_pair()
        start, _, end = route_edge(a, b, 0.0, LayoutConfig())
        assert_point(start, 50.0, 46.0)
        assert_point(end, 50.0, 194.0)

    def test_control_displaced_along_normal(self):
        """Displacement 15 on a downward edge moves the control point left."""
        a, b = stacked_pair()
        _, control, _ = route_edge(a, b, 15.0, LayoutConfig())
        assert_point(control, 35.0, 120.0)

    def test_reverse_direction_shares_axis(self):
        """b → a uses the same canonical normal as a → b."""
        a, b = stacked_pair()
        _, forward, _ = route_edge(a, b, 10.0, LayoutConfig())
        _, backward, _ = route_edge(b, a, 10.0, LayoutConfig())
        assert forward == backward

    def test_overlapping_nodes(self):
        """Coincident centres — no route."""
        a = make_layout_node("a", 0.0, 0.0)
        b = make_layout_node("b", 0.0, 0.0)
        assert route_edge(a, b, 0.0, LayoutConfig()) is None


# ─── route_edges Tests ────────────────────────────────────────────────────────


class TestRouteEdges:
    def test_lone_edge_bends_by_curvature(self):
        """One a → b edge — offset 0, control bent by edge_curvature."""
        routes = route_edges(make_graph(GraphEdge("a", "b")), stacked_pair(), LayoutConfig())
        assert len(routes) == 1
        assert routes[0].offset == 0.0
        assert_point(routes[0].control, 35.0, 120.0)

    def test_parallel_edges_fan_out(self):
        """Two a → b edges — offsets ∓12.5, controls mirrored about the midline."""
        g = make_graph(GraphEdge("a", "b"), GraphEdge("a", "b"))
        routes = route_edges(g, stacked_pair(), LayoutConfig())
        assert [r.offset for r in routes] == [-12.5, 12.5]
        assert [r.control.x for r in routes] == pytest.approx([62.5, 37.5])
        assert routes[0].control.y == pytest.approx(120.0)
        assert routes[1].control.y == pytest.approx(120.0)

    def test_opposite_edges_share_bundle(self):
        """a → b and b → a form one bundle of two."""
        g = make_graph(GraphEdge("a", "b"), GraphEdge("b", "a"))
        routes = route_edges(g, stacked_pair(), LayoutConfig())
        assert [r.offset for r in routes] == [-12.5, 12.5]
        assert routes[0].control != routes[1].control

    def test_three_edges_center_one_straight(self):
        """Three edges — the middle one has offset 0 and a straight control point."""
        g = make_graph(GraphEdge("a", "b"), GraphEdge("a", "b"), GraphEdge("a", "b"))
        routes = route_edges(g, stacked_pair(), LayoutConfig())
        assert [r.offset for r in routes] == [-25.0, 0.0, 25.0]
        assert_point(routes[1].control, 50.0, 120.0)

    def test_custom_spacing(self):
        """edge_spacing scales the offsets."""
        g = make_graph(GraphEdge("a", "b"), GraphEdge("a", "b"))
        routes = route_edges(g, stacked_pair(), LayoutConfig(edge_spacing=40.0))
        assert [r.offset for r in routes] == [-20.0, 20.0]

    def test_missing_endpoint_skipped(self):
        """An edge to a node with no box is skipped, not raised."""
        g = make_graph(GraphEdge("a", "b"), GraphEdge("a", "c"))
        routes = route_edges(g, stacked_pair(), LayoutConfig())
        assert [(r.source_id, r.target_id) for r in routes] == [("a", "b")]

    def test_self_loop_skipped(self):
        """Self-loops are not routed."""
        g = make_graph(GraphEdge("a", "a"), GraphEdge("a", "b"))
        routes = route_edges(g, stacked_pair(), LayoutConfig())
        assert [r.index for r in routes] == [1]

    def test_style_and_label_attached(self):
        """Routed edges carry the derived style and the edge label."""
        edge = GraphEdge("a", "b", strength=Strength.STRONG, effect=Effect.INCREASES, confidence=Confidence.LOW, label="x")
        (route,) = route_edges(make_graph(edge), stacked_pair(), LayoutConfig())
        assert route.style.stroke_width == 3.5
        assert route.style.color == WARM
        assert route.style.dash_pattern == "2,4"
        assert route.label == "x"

    def test_midpoint_on_curve(self):
        """midpoint is the t=0.5 point of the quadratic curve."""
        (route,) = route_edges(make_graph(GraphEdge("a", "b")), stacked_pair(), LayoutConfig())
        assert_point(route.midpoint, 42.5, 120.0)
