"""Layout configuration.

All geometry is in pixels. Defaults follow the compact cause/effect layout:
a 900px container centred on x=450 with 180×80 nodes.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from causal_diagram.errors import ConfigError
from causal_diagram.graph import CAUSE, EFFECT, INTERMEDIATE

# Extra horizontal spacing per category, added to the base gap.
DEFAULT_CATEGORY_SPACING: dict[str, float] = {CAUSE: 40.0, INTERMEDIATE: 60.0, EFFECT: 80.0}

# camelCase keys accepted from host configuration, mapped to field names.
_ALIASES: dict[str, str] = {
    "centerX": "center_x",
    "containerWidth": "canvas_width",
    "canvasWidth": "canvas_width",
    "nodeWidth": "node_width",
    "nodeHeight": "node_height",
    "layerGap": "layer_gap",
    "baseGap": "base_gap",
    "subRowGap": "sub_row_gap",
    "categorySpacing": "category_spacing",
    "categoryTiers": "category_tiers",
    "tierPadding": "tier_padding",
    "subRows": "sub_rows",
    "sweepIterations": "sweep_iterations",
    "edgeSpacing": "edge_spacing",
    "edgeCurvature": "edge_curvature",
    "groupPadding": "group_padding",
    "groupHeaderHeight": "group_header_height",
    "subgroupPadding": "subgroup_padding",
    "subgroupHeaderHeight": "subgroup_header_height",
    "subgroupGap": "subgroup_gap",
    "subgroupRowGap": "subgroup_row_gap",
    "subgroupOrder": "subgroup_order",
    "clipMargin": "clip_margin",
}

# Per-category spacing shorthands accepted in config files.
_SPACING_KEYS: dict[str, str] = {
    "causeSpacing": CAUSE,
    "intermediateSpacing": INTERMEDIATE,
    "effectSpacing": EFFECT,
}


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry and behaviour knobs for one diagram.

    Attributes:
        center_x: Global horizontal centre every row is spaced around.
        canvas_width: Width used to resolve manual positions.
        node_width: Minimum node width.
        node_height: Node height.
        char_width: Approximate label glyph width, for width estimation.
        label_padding: Horizontal padding added to the estimated label width.
        base_gap: Minimum horizontal gap between neighbouring nodes.
        layer_gap: Vertical gap between tier bands.
        sub_row_gap: Vertical gap between sub-rows of one tier.
        group_padding: Band padding above and below its rows.
        group_header_height: Header strip at the top of each band.
        category_spacing: Extra horizontal gap per category.
        category_tiers: Optional explicit category → tier map.
        tier_padding: Extra bottom padding per tier index.
        sub_rows: Node id → sub-row index inside its tier.
        sweep_iterations: Barycenter sweeps performed by the sequencer.
        edge_spacing: Perpendicular distance between parallel edges.
        edge_curvature: Perpendicular bend of a lone edge.
        clip_margin: Gap kept between an edge end and the node border.
        subgroup_padding: Padding inside a subgroup column container.
        subgroup_header_height: Header strip at the top of a subgroup column.
        subgroup_gap: Horizontal gap between subgroup columns.
        subgroup_row_gap: Vertical gap between stacked nodes in a column.
        subgroup_order: Subgroup names placed first, left to right; other
            subgroups follow in order of first appearance.

    Every geometry value except ``center_x`` and ``edge_curvature`` must be
    non-negative; ``ConfigError`` is raised otherwise.
    """

    center_x: float = 450.0
    canvas_width: float = 900.0
    node_width: float = 180.0
    node_height: float = 80.0
    char_width: float = 8.0
    label_padding: float = 40.0
    base_gap: float = 20.0
    layer_gap: float = 30.0
    sub_row_gap: float = 30.0
    group_padding: float = 20.0
    group_header_height: float = 28.0
    category_spacing: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_SPACING))
    category_tiers: Mapping[str, int] | None = None
    tier_padding: Mapping[int, float] = field(default_factory=dict)
    sub_rows: Mapping[str, int] = field(default_factory=dict)
    sweep_iterations: int = 4
    edge_spacing: float = 25.0
    edge_curvature: float = 15.0
    clip_margin: float = 6.0
    subgroup_padding: float = 12.0
    subgroup_header_height: float = 20.0
    subgroup_gap: float = 15.0
    subgroup_row_gap: float = 15.0
    subgroup_order: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            if f.name in _SIGNED_FIELDS:
                continue
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and value < 0:
                raise ConfigError(f"layout option {f.name!r} must be non-negative, got {value!r}")
            if isinstance(value, Mapping) and any(v < 0 for v in value.values()):
                raise ConfigError(f"layout option {f.name!r} values must be non-negative")

    def category_gap(self, category: str) -> float:
        return float(self.category_spacing.get(category, 0.0))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LayoutConfig:
        """Build a config from a plain mapping (e.g. parsed YAML).

        Accepts field names or their camelCase aliases, plus the
        ``causeSpacing``/``intermediateSpacing``/``effectSpacing`` shorthands.

        Raises:
            ConfigError: On unknown keys or values of the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"layout config must be a mapping, got {type(data).__name__}")

        fields = {f.name: f for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        spacing: dict[str, float] = dict(DEFAULT_CATEGORY_SPACING)

        for key, value in data.items():
            if key in _SPACING_KEYS:
                spacing[_SPACING_KEYS[key]] = _number(key, value)
                continue
            name = _ALIASES.get(key, key)
            if name not in fields:
                raise ConfigError(f"unknown layout option {key!r}")
            kwargs[name] = _coerce(name, value, key)

        if "category_spacing" in kwargs:
            spacing.update(kwargs["category_spacing"])
        kwargs["category_spacing"] = spacing
        return cls(**kwargs)


def load_config(path: str | Path) -> LayoutConfig:
    """Read a YAML layout configuration file.

    An optional top-level ``layout:`` key is unwrapped, so a host config with
    several sections can be passed as-is.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, Mapping) and isinstance(data.get("layout"), Mapping):
        data = data["layout"]
    return LayoutConfig.from_mapping(data)


# ─── Value coercion ───────────────────────────────────────────────────────────

_SIGNED_FIELDS = {"center_x", "edge_curvature"}
_INT_FIELDS = {"sweep_iterations"}
_STR_LISTS = {"subgroup_order"}
_STR_FLOAT_MAPS = {"category_spacing"}
_STR_INT_MAPS = {"category_tiers", "sub_rows"}
_INT_FLOAT_MAPS = {"tier_padding"}


def _number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"layout option {key!r} must be a number, got {value!r}")
    return float(value)


def _integer(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"layout option {key!r} must be an integer, got {value!r}")
    return value


def _coerce(name: str, value: Any, key: str | None = None) -> Any:
    label = key or name
    if name in _INT_FIELDS:
        count = _integer(label, value)
        if count < 0:
            raise ConfigError(f"layout option {label!r} must be non-negative")
        return count
    if name in _STR_LISTS:
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"layout option {label!r} must be a list of names")
        return tuple(value)
    if name in _STR_FLOAT_MAPS | _STR_INT_MAPS | _INT_FLOAT_MAPS:
        if value is None and name == "category_tiers":
            return None
        if not isinstance(value, Mapping):
            raise ConfigError(f"layout option {label!r} must be a mapping")
        if name in _STR_FLOAT_MAPS:
            return {str(k): _number(f"{label}.{k}", v) for k, v in value.items()}
        if name in _STR_INT_MAPS:
            result = {str(k): _integer(f"{label}.{k}", v) for k, v in value.items()}
            if any(v < 0 for v in result.values()):
                raise ConfigError(f"layout option {label!r} values must be non-negative")
            return result
        return {_integer(f"{label} key", k): _number(f"{label}.{k}", v) for k, v in value.items()}
    number = _number(label, value)
    if number < 0 and name not in _SIGNED_FIELDS:
        raise ConfigError(f"layout option {label!r} must be non-negative, got {value!r}")
    return number
