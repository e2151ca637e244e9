"""Layout pipeline for causal diagrams.

Phases:
  1. Tier assignment       (tiers.py — cycle exclusion + longest path)
  2. Within-tier ordering  (sequencer.py — barycenter sweeps)
  3. Coordinate assignment (coordinates.py — bands, rows, manual overrides)
  4. Edge routing          (routing.py — clipped, offset quadratic curves)

If phases 1–3 raise, the pass falls back to ``grid_layout`` so the diagram
stays renderable; edge routing then runs on the grid.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from causal_diagram.config import LayoutConfig
from causal_diagram.errors import DiagramError, GraphWarning, WarningCode
from causal_diagram.graph import GraphModel
from causal_diagram.layout.coordinates import (
    assign_coordinates,
    estimate_node_dimensions,
    grid_layout,
    label_dimensions,
    place_row,
    subgroup_columns,
)
from causal_diagram.layout.routing import bundle_offsets, clip_to_box, route_edges
from causal_diagram.layout.sequencer import SWEEP_ITERATIONS, count_crossings, crossing_weight, order_tiers
from causal_diagram.layout.tiers import TierAssignment, exclude_cycle_edges
from causal_diagram.layout.types import LayoutNode, LayoutResult, Point, RoutedEdge, SubgroupBox, TierBand

logger = logging.getLogger(__name__)

__all__ = [
    "SWEEP_ITERATIONS",
    "LayoutNode",
    "LayoutPass",
    "LayoutResult",
    "Point",
    "RoutedEdge",
    "SubgroupBox",
    "TierAssignment",
    "TierBand",
    "assign_coordinates",
    "bundle_offsets",
    "clip_to_box",
    "compute_layout",
    "count_crossings",
    "crossing_weight",
    "estimate_node_dimensions",
    "exclude_cycle_edges",
    "grid_layout",
    "label_dimensions",
    "order_tiers",
    "place_row",
    "route_edges",
    "subgroup_columns",
]


class LayoutPass:
    """One layout computation over an immutable graph.

    ``steps()`` runs the pipeline one phase at a time, yielding the name of
    each finished phase, so a caller can interleave other work between
    phases. ``result`` is set once the generator is exhausted.
    """

    def __init__(self, graph: GraphModel, config: LayoutConfig | None = None) -> None:
        self.graph = graph
        self.config = config or LayoutConfig()
        self.result: LayoutResult | None = None

    def steps(self) -> Iterator[str]:
        graph, config = self.graph, self.config
        warnings: list[GraphWarning] = list(graph.warnings)
        assignment: TierAssignment | None = None
        fallback = False

        try:
            assignment = TierAssignment.assign(graph, config.category_tiers)
            warnings.extend(assignment.warnings)
            yield "tiers"
            ordering = order_tiers(graph, assignment, config.sweep_iterations)
            yield "ordering"
            nodes, bands = assign_coordinates(graph, assignment, ordering, config)
        except Exception as exc:
            logger.error("layout failed, falling back to grid placement: %s", exc, exc_info=True)
            warnings.append(
                GraphWarning(
                    code=WarningCode.LAYOUT_FALLBACK,
                    message=f"layout failed ({type(exc).__name__}: {exc}); using grid placement",
                )
            )
            fallback = True
            tiers = assignment.tiers if assignment is not None else None
            nodes, bands = grid_layout(graph, config, tiers)
        yield "coordinates"

        try:
            edges = route_edges(graph, nodes, config)
        except Exception as exc:
            logger.error("edge routing failed, drawing nodes only: %s", exc, exc_info=True)
            warnings.append(
                GraphWarning(
                    code=WarningCode.LAYOUT_FALLBACK,
                    message=f"edge routing failed ({type(exc).__name__}: {exc}); edges omitted",
                )
            )
            edges = []
        self.result = LayoutResult(nodes=nodes, edges=edges, bands=bands, warnings=warnings, fallback=fallback)
        yield "edges"

    def run(self) -> LayoutResult:
        """Drive ``steps()`` to completion and return the result."""
        for _ in self.steps():
            pass
        return self.finished()

    def finished(self) -> LayoutResult:
        """The result of a completed pass.

        Raises:
            DiagramError: If ``steps()`` has not been run to completion.
        """
        if self.result is None:
            raise DiagramError("layout pass has not finished")
        return self.result


def compute_layout(graph: GraphModel, config: LayoutConfig | None = None) -> LayoutResult:
    """Run the full layout pipeline synchronously."""
    return LayoutPass(graph, config).run()
