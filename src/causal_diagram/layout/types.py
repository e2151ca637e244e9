"""Layout IR — positioned nodes, tier bands and routed edges."""

from __future__ import annotations

from dataclasses import dataclass, field

from causal_diagram.errors import GraphWarning
from causal_diagram.style import EdgeStyle


@dataclass(frozen=True)
class Point:
    """A 2D point in pixel coordinates."""

    x: float
    y: float


@dataclass
class LayoutNode:
    """A positioned node. ``(x, y)`` is the top-left corner of its box."""

    id: str
    label: str
    tier: int
    order: int
    x: float
    y: float
    width: float
    height: float
    render_category: str
    sub_row: int = 0
    manual: bool = False
    subgroup: str | None = None

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class SubgroupBox:
    """A padded column container for the members of one subgroup.

    ``name`` is None for the column that collects a tier's nodes without a
    subgroup. The header strip sits at the top of the box.
    """

    name: str | None
    tier: int
    x: float
    y: float
    width: float
    height: float
    members: tuple[str, ...] = ()

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, node: LayoutNode) -> bool:
        return self.x <= node.x and node.right <= self.right and self.y <= node.y and node.bottom <= self.bottom


@dataclass(frozen=True)
class TierBand:
    """The vertical extent reserved for one tier.

    ``subgroups`` lists the column containers when the tier is arranged by
    subgroup, left to right; it is empty for a plain row layout.
    """

    tier: int
    top: float
    bottom: float
    rows: int = 1
    subgroups: tuple[SubgroupBox, ...] = ()

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, node: LayoutNode) -> bool:
        return self.top <= node.y and node.bottom <= self.bottom


@dataclass
class RoutedEdge:
    """An edge drawn as a quadratic curve.

    ``points`` is ``[start, control, end]``: start and end sit on the node
    borders, control bends the curve. ``offset`` is the edge's slot within
    its parallel bundle (zero for a lone edge).
    """

    source_id: str
    target_id: str
    index: int
    points: list[Point]
    offset: float
    style: EdgeStyle
    label: str | None = None

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def control(self) -> Point:
        return self.points[1]

    @property
    def end(self) -> Point:
        return self.points[-1]

    @property
    def midpoint(self) -> Point:
        """Point on the curve at t=0.5, where labels are anchored."""
        s, c, e = self.points
        return Point(0.25 * s.x + 0.5 * c.x + 0.25 * e.x, 0.25 * s.y + 0.5 * c.y + 0.25 * e.y)

    def touches(self, node_id: str) -> bool:
        return self.source_id == node_id or self.target_id == node_id


@dataclass
class LayoutResult:
    """Everything the rendering surface needs for one layout pass."""

    nodes: list[LayoutNode]
    edges: list[RoutedEdge]
    bands: list[TierBand]
    warnings: list[GraphWarning] = field(default_factory=list)
    fallback: bool = False

    @property
    def notice(self) -> str | None:
        """Inline message for the host when the result is degraded."""
        if self.fallback:
            return "Layout could not be computed; showing a simplified grid."
        return None

    def node_map(self) -> dict[str, LayoutNode]:
        return {n.id: n for n in self.nodes}

    def band_for(self, tier: int) -> TierBand | None:
        for band in self.bands:
            if band.tier == tier:
                return band
        return None
