from __future__ import annotations

import math
from typing import Optional, Sequence

from road_damage_map.objects.bbox import BBox
from road_damage_map.objects.cluster_hierarchy import ClusterHierarchy
from road_damage_map.objects.cluster_node import Node
from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.objects.view_state import ClusterHit, LeafHit, NodeHit
from road_damage_map.utility.marker_style import style_for
from road_damage_map.utility.projection import get_projection


def query(hierarchy: ClusterHierarchy, bbox: BBox, zoom: float) -> list[Node]:
    """Visible nodes for a viewport.

    Args:
        hierarchy: Current cluster hierarchy.
        bbox: Query window in lon/lat, usually the viewport plus a margin.
        zoom: Map zoom; floored and clamped to the hierarchy's zoom range.

    Returns:
        Nodes of that zoom level positioned inside bbox, in stable order.
    """
    return hierarchy.level(zoom).nodes_in(bbox)


def hit_test(
    nodes: Sequence[Node],
    longitude: float,
    latitude: float,
    zoom: float,
    settings: Optional[ClusterSettings] = None,
) -> Optional[NodeHit]:
    """Resolve a click position to the marker under it.

    Explanation:
    Each marker is hit inside a circle of half its size around the centre of the drawn
    marker. Clusters are drawn centred on their position; leaf icons stand on their
    point, so their circle sits half an icon above it.

    Args:
        nodes: Nodes currently drawn (result of `query`).
        longitude: Click longitude.
        latitude: Click latitude.
        zoom: Map zoom the nodes are drawn at.
        settings: Supplies the tile size of the pixel grid.

    Returns:
        ClusterHit or LeafHit for the nearest marker whose circle covers the click,
        None if the click hit empty map.
    """
    if not nodes:
        return None
    projection = get_projection((settings or ClusterSettings()).tile_size)
    mpp = projection.meters_per_pixel(zoom)
    click_xs, click_ys = projection.to_meters([longitude], [latitude])
    node_xs, node_ys = projection.to_meters([n.longitude for n in nodes], [n.latitude for n in nodes])
    best: Optional[tuple[float, str, Node]] = None
    for node, x, y in zip(nodes, node_xs, node_ys):
        style = style_for(node)
        # Mercator y grows northward, screen up
        centre_y = y + style.hit_offset_px * mpp
        dist_px = math.hypot(click_xs[0] - x, click_ys[0] - centre_y) / mpp
        if dist_px > style.hit_radius_px:
            continue
        candidate = (dist_px, node.sort_key, node)
        if best is None or candidate[:2] < best[:2]:
            best = candidate
    if best is None:
        return None
    node = best[2]
    if node.is_cluster:
        return ClusterHit(node)
    return LeafHit(node.point)
