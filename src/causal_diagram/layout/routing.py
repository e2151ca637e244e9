"""Edge routing — curved edges between node boundaries.

Every edge is a quadratic curve. Its control point sits on the perpendicular
through the midpoint of the clipped endpoints:

  - a lone edge bends by ``edge_curvature`` so it reads as a curve;
  - k edges sharing an unordered endpoint pair fan out symmetrically, the
    i-th one displaced by ``(i - (k - 1) / 2) * edge_spacing``.

The perpendicular is taken from the pair's canonical (sorted-id) direction,
so A→B and B→A edges of one bundle fan out on a common axis.
"""

from __future__ import annotations

import logging
import math
from collections import Counter

from causal_diagram.config import LayoutConfig
from causal_diagram.graph import GraphModel
from causal_diagram.layout.types import LayoutNode, Point, RoutedEdge
from causal_diagram.style import edge_style

logger = logging.getLogger(__name__)

_EPS = 1e-9


def bundle_offsets(count: int, spacing: float) -> list[float]:
    """Perpendicular offsets for ``count`` parallel edges; they sum to zero."""
    return [(i - (count - 1) / 2) * spacing for i in range(count)]


def clip_to_box(center: Point, toward: Point, half_w: float, half_h: float) -> Point:
    """Where the ray from ``center`` toward ``toward`` leaves a centred box.

    The box spans ``half_w`` / ``half_h`` either side of ``center``. When the
    two points coincide the centre itself is returned.
    """
    dx = toward.x - center.x
    dy = toward.y - center.y
    if abs(dx) < _EPS and abs(dy) < _EPS:
        return center
    scales = []
    if abs(dx) > _EPS:
        scales.append(half_w / abs(dx))
    if abs(dy) > _EPS:
        scales.append(half_h / abs(dy))
    t = min(scales)
    return Point(center.x + dx * t, center.y + dy * t)


def route_edge(
    source: LayoutNode,
    target: LayoutNode,
    displacement: float,
    config: LayoutConfig,
) -> list[Point] | None:
    """Control points ``[start, control, end]`` for one edge.

    ``displacement`` is measured along the left-hand normal of the canonical
    direction (from the lower id to the higher id). Returns None when the two
    node centres coincide.
    """
    sc, tc = source.center, target.center
    if math.hypot(tc.x - sc.x, tc.y - sc.y) < _EPS:
        return None

    margin = config.clip_margin
    start = clip_to_box(sc, tc, source.width / 2 + margin, source.height / 2 + margin)
    end = clip_to_box(tc, sc, target.width / 2 + margin, target.height / 2 + margin)

    lo, hi = (sc, tc) if source.id <= target.id else (tc, sc)
    dx, dy = hi.x - lo.x, hi.y - lo.y
    dist = math.hypot(dx, dy)
    nx_, ny_ = -dy / dist, dx / dist

    mid = Point((start.x + end.x) / 2, (start.y + end.y) / 2)
    control = Point(mid.x + nx_ * displacement, mid.y + ny_ * displacement)
    return [start, control, end]


def route_edges(graph: GraphModel, nodes: list[LayoutNode], config: LayoutConfig) -> list[RoutedEdge]:
    """Route every edge of ``graph`` between the positioned ``nodes``.

    Edges with an endpoint missing from ``nodes`` and self-loops are skipped.
    Bundle slots are assigned in input order per unordered endpoint pair.
    """
    node_map = {n.id: n for n in nodes}

    routable = [
        (idx, edge)
        for idx, edge in enumerate(graph.edges)
        if edge.source_id in node_map and edge.target_id in node_map and edge.source_id != edge.target_id
    ]
    skipped = len(graph.edges) - len(routable)
    if skipped:
        logger.debug("skipped %d edge(s) without two distinct positioned endpoints", skipped)

    bundle_size = Counter(edge.pair for _, edge in routable)
    seen: Counter[tuple[str, str]] = Counter()

    routes: list[RoutedEdge] = []
    for idx, edge in routable:
        count = bundle_size[edge.pair]
        slot = seen[edge.pair]
        seen[edge.pair] += 1

        offset = bundle_offsets(count, config.edge_spacing)[slot]
        displacement = config.edge_curvature if count == 1 else offset

        points = route_edge(node_map[edge.source_id], node_map[edge.target_id], displacement, config)
        if points is None:
            logger.debug("skipped edge %s: endpoints overlap", edge)
            continue

        routes.append(
            RoutedEdge(
                source_id=edge.source_id,
                target_id=edge.target_id,
                index=idx,
                points=points,
                offset=offset,
                style=edge_style(edge),
                label=edge.label,
            )
        )
    return routes
