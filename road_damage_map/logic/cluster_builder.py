from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Iterable, Mapping, Optional, Sequence

from shapely import STRtree, points

from road_damage_map.objects.cluster_hierarchy import ClusterHierarchy, ClusterLevel
from road_damage_map.objects.cluster_node import ClusterNode, LeafNode, Node
from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.objects.inspection_point import InspectionPoint
from road_damage_map.utility.projection import WebMercatorProjection, get_projection

log = logging.getLogger(__name__)


class ClusterBuilder:
    """Build a ClusterHierarchy from inspection points.

    Explanation:
    Starts with one leaf per point at the point level and greedily merges the nodes of
    the next finer level, zoom by zoom down to min_zoom. Nodes are scanned in sort_key
    order; each unassigned anchor absorbs every unassigned node within radius_px pixels
    of it. Coarser levels only ever merge finer nodes, so clustering is monotone in zoom.
    """

    settings: ClusterSettings
    projection: WebMercatorProjection

    def __init__(self, settings: Optional[ClusterSettings] = None) -> None:
        """Configure radius, tile size and zoom range.

        Args:
            settings: Clustering settings, defaults to ClusterSettings().
        """
        self.settings = settings or ClusterSettings()
        self.projection = get_projection(self.settings.tile_size)

    def build(self, inspection_points: Iterable[InspectionPoint]) -> ClusterHierarchy:
        """Cluster points into one partition per zoom level.

        Args:
            inspection_points: Validated points with unique ids (any order).

        Returns:
            ClusterHierarchy covering min_zoom..point_zoom; empty levels for empty input.
        """
        ordered = sorted(inspection_points, key=lambda p: p.point_id)
        points_by_id = {p.point_id: p for p in ordered}
        if len(points_by_id) != len(ordered):
            raise ValueError("Point ids must be unique within one build")

        top = self.settings.point_zoom
        levels: dict[int, ClusterLevel] = {top: ClusterLevel(top, (LeafNode(p) for p in ordered))}
        for zoom in range(self.settings.cluster_max_zoom, self.settings.min_zoom - 1, -1):
            finer = levels[zoom + 1]
            levels[zoom] = ClusterLevel(zoom, self._cluster_level(finer.nodes, zoom, points_by_id))

        log.info(
            "Built cluster hierarchy: %d points, zoom %d..%d, %d nodes at zoom %d",
            len(ordered), self.settings.min_zoom, top,
            len(levels[self.settings.min_zoom]), self.settings.min_zoom,
        )
        return ClusterHierarchy(self.settings.min_zoom, top, levels, ordered)

    def _cluster_level(
        self,
        nodes: Sequence[Node],
        zoom: int,
        points_by_id: Mapping[str, InspectionPoint],
    ) -> list[Node]:
        """Greedy radius grouping of one level's nodes, in projected metres."""
        if not nodes:
            return []
        xs, ys = self.projection.to_meters([n.longitude for n in nodes], [n.latitude for n in nodes])
        geoms = points(xs, ys)
        radius_m = self.projection.radius_in_meters(self.settings.radius_px, zoom)

        tree = STRtree(geoms)
        pairs = tree.query(geoms, predicate="dwithin", distance=radius_m)
        neighbours: dict[int, list[int]] = defaultdict(list)
        for src, dst in zip(pairs[0], pairs[1]):
            if src != dst:
                neighbours[int(src)].append(int(dst))

        assigned = [False] * len(nodes)
        result: list[Node] = []
        for idx, anchor in enumerate(nodes):
            if assigned[idx]:
                continue
            assigned[idx] = True
            members = sorted(j for j in neighbours.get(idx, ()) if not assigned[j])
            if not members:
                result.append(anchor)
                continue
            for j in members:
                assigned[j] = True
            result.append(self._merge([anchor] + [nodes[j] for j in members], zoom, points_by_id))
        return result

    @staticmethod
    def _merge(
        members: Sequence[Node],
        zoom: int,
        points_by_id: Mapping[str, InspectionPoint],
    ) -> ClusterNode:
        """Create a cluster whose centroid is the mean of the underlying points."""
        anchor = members[0]
        member_ids = frozenset().union(*(n.member_ids for n in members))
        member_points = [points_by_id[pid] for pid in member_ids]
        return ClusterNode(
            cluster_id=f"c{zoom}:{anchor.sort_key}",
            zoom=zoom,
            longitude=math.fsum(p.longitude for p in member_points) / len(member_points),
            latitude=math.fsum(p.latitude for p in member_points) / len(member_points),
            member_ids=member_ids,
            sort_key=anchor.sort_key,
        )


def build(
    inspection_points: Iterable[InspectionPoint],
    settings: Optional[ClusterSettings] = None,
) -> ClusterHierarchy:
    """Build a ClusterHierarchy with the given (or default) settings."""
    return ClusterBuilder(settings).build(inspection_points)
