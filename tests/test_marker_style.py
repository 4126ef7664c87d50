"""
Marker presentation thresholds.
"""

import math

import pytest

from road_damage_map.logic.cluster_builder import build
from road_damage_map.utility.marker_style import (
    LEAF_SIZE,
    cluster_size,
    fill_tier,
    icon_scale,
    leaf_icon_url,
    style_for,
)


class TestClusterPresentation:

    @pytest.mark.parametrize(
        "count, tier",
        [(2, "A"), (99, "A"), (100, "B"), (150, "B"), (499, "B"), (500, "C"), (999, "C"), (1000, "D"), (25000, "D")],
    )
    def test_fill_tier(self, count, tier):
        assert fill_tier(count)[0] == tier

    def test_tier_colours(self):
        assert fill_tier(10)[1] == "rgba(123, 216, 230, 0.9)"
        assert fill_tier(200)[1] == "rgba(255, 255, 0, 0.9)"
        assert fill_tier(700)[1] == "rgba(255, 125, 0, 0.9)"
        assert fill_tier(5000)[1] == "rgba(255, 0, 0, 0.8)"

    def test_small_cluster_sizes(self):
        assert cluster_size(2) == pytest.approx(45.0)
        assert icon_scale(2) == pytest.approx(25.0)
        assert icon_scale(8) == pytest.approx(35.0)

    def test_sizes_are_clamped(self):
        assert cluster_size(150) == 60.0
        assert icon_scale(150) == 40.0
        assert 20 + 5 * math.log2(150) > 40

    def test_count_150(self):
        assert fill_tier(150)[0] == "B"
        assert icon_scale(150) == pytest.approx(min(40, max(20, 20 + 5 * math.log2(150))))


class TestStyleFor:

    def test_cluster_style(self, scenario_points):
        cluster = build(scenario_points).cluster("c15:a")
        style = style_for(cluster)
        assert style.size == pytest.approx(45.0)
        assert style.icon_width == pytest.approx(50.0)
        assert style.anchor_y == pytest.approx(25.0)
        assert style.fill_tier == "A"
        assert style.label == "2"
        assert style.icon_url is None
        assert style.hit_offset_px == 0.0

    def test_leaf_style(self, scenario_points):
        leaf = build(scenario_points).level(17).node_of_point("c")
        style = style_for(leaf)
        assert style.size == LEAF_SIZE
        assert style.icon_url == leaf_icon_url("C02") == "/Images/C02.png"
        assert (style.icon_width, style.icon_height, style.anchor_y) == (72, 72, 72)
        assert style.hit_radius_px == 15.0
        assert style.hit_offset_px == 15.0
