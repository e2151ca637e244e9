"""Tests for config.py — defaults, mapping coercion and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from causal_diagram.config import DEFAULT_CATEGORY_SPACING, LayoutConfig, load_config
from causal_diagram.errors import ConfigError, DiagramError


class TestDefaults:
    def test_geometry_defaults(self):
        """900px canvas centred on 450 with 180×80 nodes."""
        cfg = LayoutConfig()
        assert (cfg.center_x, cfg.canvas_width) == (450.0, 900.0)
        assert (cfg.node_width, cfg.node_height) == (180.0, 80.0)
        assert cfg.layer_gap == 30.0
        assert cfg.sweep_iterations == 4

    def test_category_spacing_defaults(self):
        """cause 40, intermediate 60, effect 80; anything else 0."""
        cfg = LayoutConfig()
        assert cfg.category_gap("cause") == 40.0
        assert cfg.category_gap("intermediate") == 60.0
        assert cfg.category_gap("effect") == 80.0
        assert cfg.category_gap("leaf") == 0.0

    def test_direct_construction_validates(self):
        """Negative geometry is rejected when building the dataclass directly too."""
        with pytest.raises(ConfigError, match="tier_padding"):
            LayoutConfig(tier_padding={0: -100.0})
        with pytest.raises(ConfigError, match="group_padding"):
            LayoutConfig(group_padding=-1.0)

    def test_instances_do_not_share_spacing(self):
        """Each config gets its own spacing dict."""
        assert LayoutConfig().category_spacing is not LayoutConfig().category_spacing
        assert LayoutConfig().category_spacing == DEFAULT_CATEGORY_SPACING


class TestFromMapping:
    def test_snake_case_keys(self):
        """Field names are accepted directly."""
        cfg = LayoutConfig.from_mapping({"center_x": 300, "layer_gap": 50})
        assert cfg.center_x == 300.0
        assert cfg.layer_gap == 50.0

    def test_camel_case_aliases(self):
        """camelCase option names map onto fields."""
        cfg = LayoutConfig.from_mapping({"centerX": 500, "containerWidth": 1000, "nodeWidth": 200, "layerGap": 40})
        assert (cfg.center_x, cfg.canvas_width, cfg.node_width, cfg.layer_gap) == (500.0, 1000.0, 200.0, 40.0)

    def test_spacing_shorthands(self):
        """causeSpacing etc. override single categories and keep the others."""
        cfg = LayoutConfig.from_mapping({"causeSpacing": 10, "effectSpacing": 0})
        assert cfg.category_gap("cause") == 10.0
        assert cfg.category_gap("intermediate") == 60.0
        assert cfg.category_gap("effect") == 0.0

    def test_category_spacing_merges_with_defaults(self):
        """A partial categorySpacing map keeps the unspecified defaults."""
        cfg = LayoutConfig.from_mapping({"categorySpacing": {"scenario": 25}})
        assert cfg.category_gap("scenario") == 25.0
        assert cfg.category_gap("cause") == 40.0

    def test_maps(self):
        """categoryTiers, subRows and tierPadding are read as typed maps."""
        cfg = LayoutConfig.from_mapping(
            {"categoryTiers": {"cause": 0, "effect": 2}, "subRows": {"b": 1}, "tierPadding": {1: 12}}
        )
        assert cfg.category_tiers == {"cause": 0, "effect": 2}
        assert cfg.sub_rows == {"b": 1}
        assert cfg.tier_padding == {1: 12.0}

    def test_null_category_tiers(self):
        """category_tiers: null keeps derived tiering."""
        assert LayoutConfig.from_mapping({"category_tiers": None}).category_tiers is None

    def test_unknown_key(self):
        """Unknown options raise ConfigError."""
        with pytest.raises(ConfigError, match="unknown layout option 'zoom'"):
            LayoutConfig.from_mapping({"zoom": 2})

    def test_wrong_type(self):
        """Strings where numbers are expected raise ConfigError."""
        with pytest.raises(ConfigError, match="layerGap"):
            LayoutConfig.from_mapping({"layerGap": "wide"})

    def test_bool_is_not_a_number(self):
        """true is rejected for numeric options."""
        with pytest.raises(ConfigError):
            LayoutConfig.from_mapping({"center_x": True})

    def test_negative_tier_mapping(self):
        """Mapped tiers must be non-negative."""
        with pytest.raises(ConfigError):
            LayoutConfig.from_mapping({"categoryTiers": {"cause": -1}})

    def test_negative_iterations(self):
        """sweep_iterations must be a non-negative integer."""
        with pytest.raises(ConfigError):
            LayoutConfig.from_mapping({"sweepIterations": -2})
        with pytest.raises(ConfigError):
            LayoutConfig.from_mapping({"sweepIterations": 1.5})

    @pytest.mark.parametrize(
        "options",
        [
            {"tierPadding": {0: -100}},
            {"groupPadding": -1},
            {"subRowGap": -5},
            {"nodeHeight": -80},
            {"layerGap": -30},
            {"causeSpacing": -10},
            {"categorySpacing": {"scenario": -1}},
            {"subgroupPadding": -12},
        ],
        ids=lambda options: next(iter(options)),
    )
    def test_negative_geometry_rejected(self, options: dict):
        """Negative sizes, gaps and paddings raise ConfigError."""
        with pytest.raises(ConfigError, match="non-negative"):
            LayoutConfig.from_mapping(options)

    def test_signed_options_accept_negatives(self):
        """center_x and edge_curvature may be negative."""
        cfg = LayoutConfig.from_mapping({"centerX": -100, "edgeCurvature": -15})
        assert (cfg.center_x, cfg.edge_curvature) == (-100.0, -15.0)

    def test_subgroup_options(self):
        """Subgroup geometry and ordering are read from camelCase keys."""
        cfg = LayoutConfig.from_mapping({"subgroupGap": 30, "subgroupOrder": ["models", "actors"]})
        assert cfg.subgroup_gap == 30.0
        assert cfg.subgroup_order == ("models", "actors")

    def test_subgroup_order_must_be_names(self):
        """subgroupOrder must be a list of strings."""
        with pytest.raises(ConfigError, match="subgroupOrder"):
            LayoutConfig.from_mapping({"subgroupOrder": "models"})

    def test_not_a_mapping(self):
        """A list is not a configuration."""
        with pytest.raises(ConfigError):
            LayoutConfig.from_mapping([1, 2])

    def test_config_error_is_diagram_error(self):
        """ConfigError can be caught as DiagramError."""
        assert issubclass(ConfigError, DiagramError)


class TestLoadConfig:
    def test_plain_file(self, tmp_path: Path):
        """A flat YAML mapping is read as layout options."""
        path = tmp_path / "layout.yaml"
        path.write_text("centerX: 600\nedgeSpacing: 30\n")
        cfg = load_config(path)
        assert cfg.center_x == 600.0
        assert cfg.edge_spacing == 30.0

    def test_layout_section_unwrapped(self, tmp_path: Path):
        """A top-level layout: key is unwrapped."""
        path = tmp_path / "site.yaml"
        path.write_text("layout:\n  layerGap: 45\n")
        assert load_config(path).layer_gap == 45.0

    def test_empty_file(self, tmp_path: Path):
        """An empty file yields the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == LayoutConfig()

    def test_invalid_option_in_file(self, tmp_path: Path):
        """Errors from the mapping surface as ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("bogus: 1\n")
        with pytest.raises(ConfigError):
            load_config(path)
