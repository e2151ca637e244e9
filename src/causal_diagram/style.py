"""Attribute → visual encoding.

Edge style is a pure function of the edge's semantic attributes:
strength → stroke width, effect → color, confidence → dash pattern.
Node style is looked up by render category.
"""

from __future__ import annotations

from dataclasses import dataclass

from causal_diagram.graph import (
    CAUSE,
    DEFAULT_CATEGORY,
    EFFECT,
    INTERMEDIATE,
    LEAF,
    Confidence,
    Effect,
    GraphEdge,
    Strength,
)

# ─── Edges ────────────────────────────────────────────────────────────────────

STRENGTH_WIDTHS: dict[Strength, float] = {
    Strength.WEAK: 1.2,
    Strength.MEDIUM: 2.0,
    Strength.STRONG: 3.5,
}
DEFAULT_STROKE_WIDTH = STRENGTH_WIDTHS[Strength.MEDIUM]

WARM = "#dc2626"
COOL = "#2563eb"
NEUTRAL = "#64748b"
DIMMED_ARROW = "#d1d5db"

EFFECT_COLORS: dict[Effect, str] = {
    Effect.INCREASES: WARM,
    Effect.DECREASES: COOL,
    Effect.MIXED: NEUTRAL,
}

# SVG stroke-dasharray values; None draws a solid line.
CONFIDENCE_DASHES: dict[Confidence, str | None] = {
    Confidence.LOW: "2,4",
    Confidence.MEDIUM: "6,4",
    Confidence.HIGH: None,
}


@dataclass(frozen=True)
class EdgeStyle:
    stroke_width: float
    color: str
    dash_pattern: str | None


def edge_style(edge: GraphEdge) -> EdgeStyle:
    """Derive an edge's stroke from its strength, effect and confidence.

    Missing attributes fall back to a medium-width, neutral, solid stroke.
    """
    width = STRENGTH_WIDTHS[edge.strength] if edge.strength is not None else DEFAULT_STROKE_WIDTH
    color = EFFECT_COLORS[edge.effect] if edge.effect is not None else NEUTRAL
    dash = CONFIDENCE_DASHES[edge.confidence] if edge.confidence is not None else None
    return EdgeStyle(stroke_width=width, color=color, dash_pattern=dash)


# ─── Nodes ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodeStyle:
    fill: str
    border: str
    text: str
    accent: str
    border_radius: float


# Inputs are green/blue, mechanisms purple, outcomes amber pills.
NODE_STYLES: dict[str, NodeStyle] = {
    LEAF: NodeStyle(fill="#ecfdf5", border="#059669", text="#047857", accent="#10b981", border_radius=12),
    CAUSE: NodeStyle(fill="#dbeafe", border="#3b82f6", text="#1d4ed8", accent="#60a5fa", border_radius=12),
    INTERMEDIATE: NodeStyle(fill="#ede9fe", border="#7c3aed", text="#5b21b6", accent="#8b5cf6", border_radius=20),
    EFFECT: NodeStyle(fill="#fef3c7", border="#d97706", text="#92400e", accent="#f59e0b", border_radius=40),
}


def node_style(category: str) -> NodeStyle:
    """Palette for a render category; unknown categories use the default one."""
    return NODE_STYLES.get(category, NODE_STYLES[DEFAULT_CATEGORY])
