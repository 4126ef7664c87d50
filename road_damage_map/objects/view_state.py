from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from road_damage_map.objects.cluster_node import ClusterNode
from road_damage_map.objects.inspection_point import InspectionPoint


@dataclass(frozen=True)
class ViewState:
    """Camera of the map surface.

    Explanation:
    `transition_duration_ms` is set only when the state was requested as an animated
    transition (cluster fly-to); gesture states carry None.
    """

    longitude: float
    latitude: float
    zoom: float
    pitch: float = 0.0
    bearing: float = 0.0
    transition_duration_ms: Optional[int] = None

    def fly_to(self, longitude: float, latitude: float, zoom: float, duration_ms: int) -> "ViewState":
        return replace(self, longitude=longitude, latitude=latitude, zoom=zoom, transition_duration_ms=duration_ms)


INITIAL_VIEW_STATE = ViewState(longitude=121.52184814, latitude=25.03895707, zoom=15)


@dataclass(frozen=True)
class ClusterHit:
    """Click landed on a cluster marker."""

    node: ClusterNode

    @property
    def cluster_id(self) -> str:
        return self.node.cluster_id


@dataclass(frozen=True)
class LeafHit:
    """Click landed on a single inspection point."""

    point: InspectionPoint


NodeHit = Union[ClusterHit, LeafHit]
