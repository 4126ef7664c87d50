from __future__ import annotations

import math
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from shapely import STRtree, box, points

from road_damage_map.objects.bbox import BBox
from road_damage_map.objects.cluster_node import ClusterNode, Node
from road_damage_map.objects.inspection_point import InspectionPoint


class ClusterLevel:
    """Partition of the point set at one integer zoom level.

    Explanation:
    Holds the level's nodes in stable scan order, an STR-tree over the node positions
    for viewport lookups and a point id -> node map for containment checks.
    """

    zoom: int
    nodes: tuple[Node, ...]

    def __init__(self, zoom: int, nodes: Iterable[Node]) -> None:
        """Index the nodes of one level.

        Args:
            zoom: Integer zoom level.
            nodes: Nodes covering every point exactly once.
        """
        self.zoom = zoom
        self.nodes = tuple(sorted(nodes, key=lambda n: n.sort_key))
        self._node_of_point = {pid: node for node in self.nodes for pid in node.member_ids}
        self._tree: Optional[STRtree] = None
        if self.nodes:
            geoms = points([n.longitude for n in self.nodes], [n.latitude for n in self.nodes])
            self._tree = STRtree(geoms)

    def node_of_point(self, point_id: str) -> Node:
        return self._node_of_point[point_id]

    def nodes_in(self, bbox: BBox) -> list[Node]:
        """Return nodes whose position lies in bbox (boundary included), in scan order."""
        if self._tree is None:
            return []
        hits: set[int] = set()
        for west, south, east, north in bbox.query_boxes():
            hits.update(int(i) for i in self._tree.query(box(west, south, east, north), predicate="intersects"))
        return [self.nodes[i] for i in sorted(hits)]

    def __len__(self) -> int:
        return len(self.nodes)


class ClusterHierarchy:
    """Immutable multi-resolution partition of one point set.

    Explanation:
    One ClusterLevel per zoom in min_zoom..max_zoom. The max_zoom level is the point
    level (leaves only); coarser levels are clustered. A new point set always produces
    a new hierarchy, existing ones are never changed.
    """

    min_zoom: int
    max_zoom: int

    def __init__(
        self,
        min_zoom: int,
        max_zoom: int,
        levels: Mapping[int, ClusterLevel],
        points: Sequence[InspectionPoint],
    ) -> None:
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self._levels = MappingProxyType(dict(levels))
        self.points = tuple(points)
        self._clusters = MappingProxyType(
            {
                node.cluster_id: node
                for level in self._levels.values()
                for node in level.nodes
                if isinstance(node, ClusterNode)
            }
        )

    @property
    def levels(self) -> Mapping[int, ClusterLevel]:
        return self._levels

    @property
    def point_count(self) -> int:
        return len(self.points)

    def level(self, zoom: float) -> ClusterLevel:
        """Level for a (possibly fractional) zoom: floored and clamped to the hierarchy range."""
        if math.isnan(zoom):
            zoom = self.min_zoom
        key = int(math.floor(zoom)) if math.isfinite(zoom) else (self.max_zoom if zoom > 0 else self.min_zoom)
        key = max(self.min_zoom, min(self.max_zoom, key))
        return self._levels[key]

    def cluster(self, cluster_id: str) -> Optional[ClusterNode]:
        return self._clusters.get(cluster_id)

    def __repr__(self) -> str:
        return f"ClusterHierarchy(points={self.point_count}, zooms={self.min_zoom}..{self.max_zoom})"
