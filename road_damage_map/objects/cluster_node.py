from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from road_damage_map.objects.inspection_point import InspectionPoint


@dataclass(frozen=True)
class LeafNode:
    """Node wrapping exactly one inspection point."""

    point: InspectionPoint

    is_cluster = False

    @property
    def node_id(self) -> str:
        return self.point.point_id

    @property
    def longitude(self) -> float:
        return self.point.longitude

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def point_count(self) -> int:
        return 1

    @property
    def member_ids(self) -> frozenset[str]:
        return frozenset((self.point.point_id,))

    @property
    def sort_key(self) -> str:
        return self.point.point_id


@dataclass(frozen=True)
class ClusterNode:
    """Aggregate of two or more inspection points at one zoom level.

    Explanation:
    The centroid is the unweighted mean of the member points' own coordinates,
    never of intermediate cluster centroids. `sort_key` is the smallest member
    point id and fixes the scan order used when coarser levels are built.
    """

    cluster_id: str
    zoom: int
    longitude: float
    latitude: float
    member_ids: frozenset[str]
    sort_key: str

    is_cluster = True

    @property
    def node_id(self) -> str:
        return self.cluster_id

    @property
    def point_count(self) -> int:
        return len(self.member_ids)


Node = Union[LeafNode, ClusterNode]
