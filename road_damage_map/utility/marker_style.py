"""Marker presentation contract for cluster and leaf nodes.

The thresholds below are fixed values the map surface and the side panel rely on
for visual consistency; change them only together with the front end.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from road_damage_map.objects.cluster_node import Node

CLUSTER_SIZE_MIN = 40.0
CLUSTER_SIZE_MAX = 60.0
ICON_SCALE_MIN = 20.0
ICON_SCALE_MAX = 40.0
LOG_FACTOR = 5.0

LEAF_SIZE = 30.0
LEAF_ICON_PX = 72

# (upper bound exclusive, tier, fill colour)
FILL_TIERS = (
    (100, "A", "rgba(123, 216, 230, 0.9)"),
    (500, "B", "rgba(255, 255, 0, 0.9)"),
    (1000, "C", "rgba(255, 125, 0, 0.9)"),
)
TOP_TIER = ("D", "rgba(255, 0, 0, 0.8)")


def _clamp(low: float, high: float, value: float) -> float:
    return max(low, min(high, value))


def cluster_size(count: int) -> float:
    return _clamp(CLUSTER_SIZE_MIN, CLUSTER_SIZE_MAX, CLUSTER_SIZE_MIN + LOG_FACTOR * math.log2(count))


def icon_scale(count: int) -> float:
    return _clamp(ICON_SCALE_MIN, ICON_SCALE_MAX, ICON_SCALE_MIN + LOG_FACTOR * math.log2(count))


def fill_tier(count: int) -> tuple[str, str]:
    """Return (tier, fill colour) for a cluster point count."""
    for upper, tier, color in FILL_TIERS:
        if count < upper:
            return tier, color
    return TOP_TIER


def leaf_icon_url(category_code: str) -> str:
    return f"/Images/{category_code}.png"


@dataclass(frozen=True)
class MarkerStyle:
    """Everything a map surface needs to draw one node."""

    size: float
    icon_url: str | None = None
    icon_width: float = LEAF_ICON_PX
    icon_height: float = LEAF_ICON_PX
    anchor_y: float = LEAF_ICON_PX
    fill_tier: str | None = None
    fill_color: str | None = None
    label: str | None = None
    # pixels from the anchored position up to the centre of the drawn marker
    hit_offset_px: float = 0.0

    @property
    def hit_radius_px(self) -> float:
        return self.size / 2


def style_for(node: Node) -> MarkerStyle:
    """Presentation for a node: sized circle for clusters, category icon for leaves."""
    if node.is_cluster:
        count = node.point_count
        scale = icon_scale(count)
        tier, color = fill_tier(count)
        return MarkerStyle(
            size=cluster_size(count),
            icon_width=scale * 2,
            icon_height=scale * 2,
            anchor_y=scale,
            fill_tier=tier,
            fill_color=color,
            label=str(count),
        )
    return MarkerStyle(
        size=LEAF_SIZE,
        icon_url=leaf_icon_url(node.point.category_code),
        hit_offset_px=LEAF_SIZE / 2,
    )
