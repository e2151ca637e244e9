"""SVG renderer — renders a RenderedScene to an SVG string."""

from __future__ import annotations

from causal_diagram.engine import RenderedScene, SceneEdge, SceneNode
from causal_diagram.layout import SubgroupBox, TierBand

# ─── Constants ──────────────────────────────────────────────────────────────

FONT_SIZE = 13
LABEL_FONT_SIZE = 11
LINE_HEIGHT = FONT_SIZE + 4
FONT_FAMILY = "system-ui, sans-serif"
PADDING = 20  # canvas padding in pixels
BAND_INSET = 20  # horizontal margin of a tier band around its nodes

_BAND_STYLE = 'fill="#f8fafc" stroke="#e2e8f0" stroke-width="1" stroke-dasharray="4 2"'
_SUBGROUP_STYLE = 'fill="#ffffff" stroke="#cbd5e1" stroke-width="1"'
_LABEL_BG = 'fill="#1e293b" fill-opacity="0.9" rx="4"'


def _escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _font(size: int = FONT_SIZE) -> str:
    return f'font-family="{FONT_FAMILY}" font-size="{size}"'


def _num(v: float) -> str:
    """Compact coordinate: two decimals at most, no trailing zeros."""
    text = f"{v:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _marker_id(color: str) -> str:
    return "arrow-" + color.lstrip("#")


# ─── Shape Rendering ────────────────────────────────────────────────────────


def _render_band(band: TierBand, nodes: list[SceneNode]) -> str:
    members = [n for n in nodes if band.top <= n.y and n.y + n.height <= band.bottom]
    if not members:
        return ""
    x = min(n.x for n in members) - BAND_INSET
    right = max(n.x + n.width for n in members) + BAND_INSET
    return (
        f'<rect class="tier-band" data-tier="{band.tier}" x="{_num(x)}" y="{_num(band.top)}" '
        f'width="{_num(right - x)}" height="{_num(band.height)}" rx="8" {_BAND_STYLE}/>'
    )


def _render_subgroup(box: SubgroupBox) -> str:
    """Column container rect, plus the subgroup name in its header strip."""
    attrs = f'data-tier="{box.tier}"' + (f' data-subgroup="{_escape(box.name)}"' if box.name else "")
    parts = [
        f'<rect class="subgroup" {attrs} x="{_num(box.x)}" y="{_num(box.y)}" '
        f'width="{_num(box.width)}" height="{_num(box.height)}" rx="6" {_SUBGROUP_STYLE}/>'
    ]
    if box.name:
        parts.append(
            f'<text class="subgroup-label" x="{_num(box.x + box.width / 2)}" y="{_num(box.y + 14)}" '
            f'text-anchor="middle" {_font(LABEL_FONT_SIZE)} fill="#64748b">{_escape(box.name)}</text>'
        )
    return "\n".join(parts)


def _render_node(sn: SceneNode) -> str:
    style = sn.style
    cx, cy = sn.x + sn.width / 2, sn.y + sn.height / 2
    radius = min(style.border_radius, sn.height / 2)
    lines = _escape(sn.label).split("\n")

    font = _font()
    if len(lines) == 1:
        label_svg = (
            f'<text x="{_num(cx)}" y="{_num(cy)}" dominant-baseline="central" text-anchor="middle" '
            f'{font} fill="{style.text}">{lines[0]}</text>'
        )
    else:
        start_y = cy - (len(lines) - 1) * LINE_HEIGHT / 2
        tspans = "".join(
            f'<tspan x="{_num(cx)}" y="{_num(start_y + i * LINE_HEIGHT)}">{line}</tspan>' for i, line in enumerate(lines)
        )
        label_svg = f'<text text-anchor="middle" dominant-baseline="central" {font} fill="{style.text}">{tspans}</text>'

    opacity = f' opacity="{_num(sn.opacity)}"' if sn.opacity < 1 else ""
    shape_svg = (
        f'<rect x="{_num(sn.x)}" y="{_num(sn.y)}" width="{_num(sn.width)}" height="{_num(sn.height)}" '
        f'rx="{_num(radius)}" fill="{style.fill}" stroke="{style.border}" stroke-width="1.5"/>'
    )
    return (
        f'<g class="node node-{_escape(sn.render_category)}" data-id="{_escape(sn.id)}"{opacity}>\n'
        f"{shape_svg}\n{label_svg}\n</g>"
    )


# ─── Edge Rendering ─────────────────────────────────────────────────────────


def _render_edge(se: SceneEdge) -> str:
    if len(se.points) < 3:
        return ""
    start, control, end = se.points[0], se.points[1], se.points[-1]
    d = f"M {_num(start.x)} {_num(start.y)} Q {_num(control.x)} {_num(control.y)} {_num(end.x)} {_num(end.y)}"

    attrs = f'stroke="{se.color}" stroke-width="{_num(se.stroke_width)}"'
    if se.dash_pattern is not None:
        attrs += f' stroke-dasharray="{se.dash_pattern}"'
    if se.opacity < 1:
        attrs += f' opacity="{_num(se.opacity)}"'

    parts = [
        f'<path class="edge" data-source="{_escape(se.source)}" data-target="{_escape(se.target)}" '
        f'd="{d}" fill="none" {attrs} marker-end="url(#{_marker_id(se.marker_color)})"/>'
    ]

    if se.label is not None:
        # Anchor at t=0.5 of the quadratic curve.
        lx = 0.25 * start.x + 0.5 * control.x + 0.25 * end.x
        ly = 0.25 * start.y + 0.5 * control.y + 0.25 * end.y
        text = _escape(se.label)
        w = len(se.label) * LABEL_FONT_SIZE * 0.6 + 12
        h = LABEL_FONT_SIZE + 8
        parts.append(
            f'<rect class="edge-label-bg" x="{_num(lx - w / 2)}" y="{_num(ly - h / 2)}" '
            f'width="{_num(w)}" height="{_num(h)}" {_LABEL_BG}/>'
        )
        parts.append(
            f'<text class="edge-label" x="{_num(lx)}" y="{_num(ly)}" dominant-baseline="central" '
            f'text-anchor="middle" {_font(LABEL_FONT_SIZE)} fill="#f1f5f9">{text}</text>'
        )

    return "\n".join(parts)


def _render_markers(edges: list[SceneEdge]) -> list[str]:
    colors = sorted({e.marker_color for e in edges})
    parts = ["<defs>"]
    for color in colors:
        parts.append(
            f'  <marker id="{_marker_id(color)}" markerWidth="10" markerHeight="7" refX="10" refY="3.5" '
            'orient="auto" markerUnits="userSpaceOnUse">'
        )
        parts.append(f'    <polygon points="0 0, 10 3.5, 0 7" fill="{color}"/>')
        parts.append("  </marker>")
    parts.append("</defs>")
    return parts


# ─── Public Renderer ────────────────────────────────────────────────────────


class SvgRenderer:
    """SVG renderer — consumes a RenderedScene, produces an SVG string."""

    def render(self, scene: RenderedScene) -> str:
        """SVG for ``scene``; "" for an empty scene with no notice to show."""
        if not scene.nodes and scene.notice is None:
            return ""

        nodes = sorted(scene.nodes, key=lambda n: n.z_index)
        edges = sorted(scene.edges, key=lambda e: e.z_index)

        min_x, min_y, max_x, max_y = scene.bounds()
        for band in scene.bands:
            min_y = min(min_y, band.top)
            max_y = max(max_y, band.bottom)
            for box in band.subgroups:
                min_x = min(min_x, box.x)
                max_x = max(max_x, box.right)
        min_x -= BAND_INSET
        max_x += BAND_INSET

        vx, vy = min_x - PADDING, min_y - PADDING
        svg_w = max_x - min_x + 2 * PADDING
        svg_h = max_y - min_y + 2 * PADDING
        if scene.notice is not None:
            svg_w = max(svg_w, len(scene.notice) * LABEL_FONT_SIZE * 0.6 + 2 * PADDING)

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{_num(svg_w)}" height="{_num(svg_h)}" '
            f'viewBox="{_num(vx)} {_num(vy)} {_num(svg_w)} {_num(svg_h)}">',
            *_render_markers(edges),
            f'<rect x="{_num(vx)}" y="{_num(vy)}" width="{_num(svg_w)}" height="{_num(svg_h)}" fill="white"/>',
        ]

        if scene.notice is not None:
            parts.append(
                f'<text class="notice" x="{_num(vx + PADDING)}" y="{_num(vy + PADDING / 2 + 4)}" '
                f'{_font(LABEL_FONT_SIZE)} fill="#b45309">{_escape(scene.notice)}</text>'
            )

        # Tier bands (backmost)
        for band in scene.bands:
            band_svg = _render_band(band, nodes)
            if band_svg:
                parts.append(band_svg)
            for box in band.subgroups:
                parts.append(_render_subgroup(box))

        # Edges (behind nodes), highlighted ones last
        for se in edges:
            edge_svg = _render_edge(se)
            if edge_svg:
                parts.append(edge_svg)

        # Nodes (on top)
        for sn in nodes:
            parts.append(_render_node(sn))

        parts.append("</svg>")
        return "\n".join(parts)
