"""Coordinate assignment — (tier, order) → pixel boxes.

Vertical: every non-empty tier owns a band. Bands stack top to bottom with
``layer_gap`` between them; a band holds a header strip, padding, and one or
more sub-rows.

Horizontal: each sub-row is spaced evenly around ``center_x``. A node with a
manual position is placed directly and the rest of its row flows around it
so no box overlaps it.

A tier whose nodes carry a ``subgroup`` is laid out as side-by-side columns
instead, one padded container per subgroup with a header strip.

Also provides ``grid_layout``, the deterministic fallback used when the
regular pipeline fails.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Mapping

from causal_diagram.config import LayoutConfig
from causal_diagram.graph import DEFAULT_CATEGORY_TIERS, GraphModel, GraphNode
from causal_diagram.layout.tiers import TierAssignment
from causal_diagram.layout.types import LayoutNode, SubgroupBox, TierBand

LINE_HEIGHT = 20.0  # pixels per label line
LABEL_V_PADDING = 40.0  # vertical padding around a multi-line label
_EPSILON = 1e-6  # tolerance for flush placements

# ─── Node Dimensions ──────────────────────────────────────────────────────────


def label_dimensions(label: str) -> tuple[int, int]:
    """Compute (max_line_width, line_count) for a label that may contain newlines."""
    if not label:
        return (0, 1)
    lines = label.split("\n")
    max_w = max(len(line) for line in lines)
    return (max_w, len(lines))


def estimate_node_dimensions(node: GraphNode, config: LayoutConfig) -> tuple[float, float]:
    """Estimate a node's (width, height) from its label.

    Never smaller than the configured node size.
    """
    max_line_w, line_count = label_dimensions(node.label)
    width = max(config.node_width, max_line_w * config.char_width + config.label_padding)
    height = max(config.node_height, line_count * LINE_HEIGHT + LABEL_V_PADDING)
    return (width, height)


# ─── Row Placement ────────────────────────────────────────────────────────────


def _manual_center_x(fraction: float, config: LayoutConfig) -> float:
    """Centre x for a manual 0–100 horizontal position."""
    clamped = min(max(fraction, 0.0), 100.0)
    return config.center_x + ((clamped - 50.0) / 50.0) * (config.canvas_width / 2)


def _clear_of(x: float, half: float, obstacles: list[tuple[float, float]], gap: float) -> bool:
    """True when a box centred on ``x`` keeps ``gap`` from every obstacle span."""
    return all(x + half + gap <= left + _EPSILON or x - half - gap >= right - _EPSILON for left, right in obstacles)


def place_row(
    row: list[str],
    widths: Mapping[str, float],
    categories: Mapping[str, str],
    manual_centers: Mapping[str, float],
    config: LayoutConfig,
) -> dict[str, float]:
    """Horizontal centres for one sub-row.

    Nodes without a manual centre are spaced evenly around ``center_x`` with
    ``spacing = widest + base_gap + category extra``; the first centre is
    ``center_x - (count - 1) * spacing / 2``.

    Manual nodes stay exactly where they were put. The other nodes are then
    placed left to right in row order: each takes the position closest to
    its even-spacing centre that keeps ``base_gap`` clear of every manual
    box and of the node placed before it. Candidate positions are the ideal
    centre and the slots flush against either side of each manual box, so
    a node may hop over a manual node when the space before it is taken.
    """
    gap = config.base_gap
    auto = [nid for nid in row if nid not in manual_centers]
    centers: dict[str, float] = dict(manual_centers)
    if not auto:
        return centers

    widest = max(widths[nid] for nid in auto)
    extra = max(config.category_gap(categories[nid]) for nid in auto)
    spacing = widest + gap + extra
    start = config.center_x - (len(auto) - 1) * spacing / 2

    obstacles = sorted((mc - widths[mid] / 2, mc + widths[mid] / 2) for mid, mc in manual_centers.items())
    lower = -math.inf
    for i, nid in enumerate(auto):
        ideal = start + i * spacing
        half = widths[nid] / 2
        floor = lower + half
        candidates = [max(ideal, floor)]
        for left, right in obstacles:
            candidates.append(left - gap - half)
            candidates.append(max(floor, right + gap + half))
        feasible = [x for x in candidates if x >= floor and _clear_of(x, half, obstacles, gap)]
        x = min(feasible, key=lambda c: (abs(c - ideal), c))
        centers[nid] = x
        lower = x + half + gap

    return centers


# ─── Coordinate Assignment ────────────────────────────────────────────────────


def _sub_rows(layer: list[str], config: LayoutConfig) -> list[list[str]]:
    """Split a tier into its configured sub-rows, preserving tier order."""
    grouped: dict[int, list[str]] = defaultdict(list)
    for nid in layer:
        grouped[config.sub_rows.get(nid, 0)].append(nid)
    return [grouped[key] for key in sorted(grouped)]


def subgroup_columns(
    layer: list[str],
    lookup: Mapping[str, GraphNode],
    config: LayoutConfig,
) -> list[tuple[str | None, list[str]]]:
    """Group a tier into subgroup columns, or [] when no member has a subgroup.

    Names listed in ``config.subgroup_order`` come first, then the remaining
    subgroups by first appearance in ``layer``. Nodes without a subgroup form
    a last, unnamed column. Members keep their tier order.
    """
    grouped: dict[str | None, list[str]] = defaultdict(list)
    for nid in layer:
        grouped[lookup[nid].subgroup].append(nid)
    if set(grouped) == {None}:
        return []

    names = [name for name in config.subgroup_order if name in grouped]
    names += [name for name in grouped if name is not None and name not in names]
    columns: list[tuple[str | None, list[str]]] = [(name, grouped[name]) for name in names]
    if None in grouped:
        columns.append((None, grouped[None]))
    return columns


def _place_rows(
    layer: list[str],
    lookup: Mapping[str, GraphNode],
    dims: Mapping[str, tuple[float, float]],
    categories: Mapping[str, str],
    content_top: float,
    config: LayoutConfig,
) -> tuple[dict[str, tuple[float, float, int]], float, int]:
    """Row layout for a tier: {id: (x, y, sub_row)}, content bottom and row count.

    Manual nodes get their row's y here; their final y is resolved against
    the band once its height is known.
    """
    widths = {nid: dims[nid][0] for nid in layer}
    rows = _sub_rows(layer, config)
    placed: dict[str, tuple[float, float, int]] = {}
    y = content_top
    for row_idx, row in enumerate(rows):
        manual_centers = {
            nid: _manual_center_x(lookup[nid].manual_position[0], config)
            for nid in row
            if lookup[nid].manual_position is not None
        }
        centers = place_row(row, widths, categories, manual_centers, config)
        for nid in row:
            placed[nid] = (centers[nid] - widths[nid] / 2, y, row_idx)
        y += max(dims[nid][1] for nid in row) + config.sub_row_gap
    return placed, y - config.sub_row_gap, len(rows)


def _place_columns(
    tier_idx: int,
    columns: list[tuple[str | None, list[str]]],
    dims: Mapping[str, tuple[float, float]],
    content_top: float,
    config: LayoutConfig,
) -> tuple[dict[str, tuple[float, float, int]], float, list[SubgroupBox]]:
    """Column layout for a tier arranged by subgroup.

    Columns are centred as a block on ``center_x`` with ``subgroup_gap``
    between them. Each column is as wide as its widest member plus padding;
    members stack top to bottom, centred in the column.
    """
    pad = config.subgroup_padding
    col_widths = [max(dims[nid][0] for nid in members) + 2 * pad for _, members in columns]
    total = sum(col_widths) + config.subgroup_gap * (len(columns) - 1)
    x = config.center_x - total / 2

    placed: dict[str, tuple[float, float, int]] = {}
    boxes: list[SubgroupBox] = []
    content_bottom = content_top
    for (name, members), col_width in zip(columns, col_widths):
        y = content_top + config.subgroup_header_height + pad
        for slot, nid in enumerate(members):
            width, height = dims[nid]
            placed[nid] = (x + (col_width - width) / 2, y, slot)
            y += height + config.subgroup_row_gap
        box_bottom = y - config.subgroup_row_gap + pad
        boxes.append(
            SubgroupBox(
                name=name,
                tier=tier_idx,
                x=x,
                y=content_top,
                width=col_width,
                height=box_bottom - content_top,
                members=tuple(members),
            )
        )
        content_bottom = max(content_bottom, box_bottom)
        x += col_width + config.subgroup_gap
    return placed, content_bottom, boxes


def assign_coordinates(
    graph: GraphModel,
    assignment: TierAssignment,
    ordering: list[list[str]],
    config: LayoutConfig,
) -> tuple[list[LayoutNode], list[TierBand]]:
    """Assign pixel boxes to every node and a vertical band to every tier.

    A tier whose members carry a ``subgroup`` is arranged as subgroup
    columns; manual positions and sub-rows do not apply inside it. Any
    other tier is laid out as one or more rows.

    Args:
        graph: The model being laid out.
        assignment: Tier of each node.
        ordering: Per-tier node order from the sequencer.
        config: Geometry settings.

    Returns:
        (nodes, bands): one LayoutNode per graph node, in tier/order order, and
        one TierBand per non-empty tier. Every node lies inside its band.
    """
    lookup = {node.id: node for node in graph.nodes}
    dims = {nid: estimate_node_dimensions(node, config) for nid, node in lookup.items()}
    categories = {nid: node.render_category for nid, node in lookup.items()}

    nodes: list[LayoutNode] = []
    bands: list[TierBand] = []
    top = 0.0

    for tier_idx, layer in enumerate(ordering):
        if not layer:
            continue
        content_top = top + config.group_header_height + config.group_padding
        columns = subgroup_columns(layer, lookup, config)
        boxes: list[SubgroupBox] = []
        if columns:
            placed, content_bottom, boxes = _place_columns(tier_idx, columns, dims, content_top, config)
            row_count = max(len(members) for _, members in columns)
        else:
            placed, content_bottom, row_count = _place_rows(layer, lookup, dims, categories, content_top, config)

        padding = config.group_padding + max(config.tier_padding.get(tier_idx, 0.0), 0.0)
        bottom = max(content_bottom + padding, content_bottom)
        band = TierBand(tier=tier_idx, top=top, bottom=bottom, rows=row_count, subgroups=tuple(boxes))
        bands.append(band)

        order_of = {nid: i for i, nid in enumerate(layer)}
        for nid in layer:
            node = lookup[nid]
            width, height = dims[nid]
            x, node_y, sub_row = placed[nid]
            manual = not columns and node.manual_position is not None
            if manual:
                fy = min(max(node.manual_position[1], 0.0), 100.0)
                node_y = band.top + (fy / 100.0) * max(band.height - height, 0.0)
            nodes.append(
                LayoutNode(
                    id=nid,
                    label=node.label,
                    tier=tier_idx,
                    order=order_of[nid],
                    x=x,
                    y=node_y,
                    width=width,
                    height=height,
                    render_category=categories[nid],
                    sub_row=sub_row,
                    manual=manual,
                    subgroup=node.subgroup,
                )
            )

        top = bottom + config.layer_gap

    return nodes, bands


# ─── Naive Grid Fallback ──────────────────────────────────────────────────────


def grid_layout(
    graph: GraphModel,
    config: LayoutConfig,
    tiers: Mapping[str, int] | None = None,
) -> tuple[list[LayoutNode], list[TierBand]]:
    """Deterministic grid placement: tier → row, input order → column.

    Uses ``tiers`` when available, else the node's pinned tier, else the
    default tier of its category. Every node gets the configured node size.
    """
    rows: dict[int, list[GraphNode]] = defaultdict(list)
    for node in graph.nodes:
        if tiers is not None and node.id in tiers:
            row = tiers[node.id]
        elif node.tier is not None:
            row = node.tier
        else:
            row = DEFAULT_CATEGORY_TIERS.get(node.render_category, 0)
        rows[max(row, 0)].append(node)

    width, height = config.node_width, config.node_height
    spacing = width + config.base_gap

    nodes: list[LayoutNode] = []
    bands: list[TierBand] = []
    y = 0.0
    for row in sorted(rows):
        members = rows[row]
        start = config.center_x - (len(members) - 1) * spacing / 2
        for col, node in enumerate(members):
            nodes.append(
                LayoutNode(
                    id=node.id,
                    label=node.label,
                    tier=row,
                    order=col,
                    x=start + col * spacing - width / 2,
                    y=y,
                    width=width,
                    height=height,
                    render_category=node.render_category,
                )
            )
        bands.append(TierBand(tier=row, top=y, bottom=y + height))
        y += height + config.layer_gap

    return nodes, bands
