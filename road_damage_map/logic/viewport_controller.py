from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from road_damage_map.logic.expansion_resolver import expansion_zoom
from road_damage_map.objects.bbox import BBox
from road_damage_map.objects.cluster_hierarchy import ClusterHierarchy
from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.objects.inspection_point import InspectionPoint
from road_damage_map.objects.view_state import INITIAL_VIEW_STATE, ClusterHit, LeafHit, NodeHit, ViewState
from road_damage_map.utility.projection import WORLD_WIDTH_M, get_projection

log = logging.getLogger(__name__)

DetailCallback = Callable[[InspectionPoint], None]


class ViewportController:
    """Owns the live ViewState.

    Explanation:
    Gestures replace the state verbatim. A cluster click requests an animated fly-to
    the cluster centroid at its expansion zoom; a leaf click selects the point for the
    detail view and leaves the camera alone.
    """

    view_state: ViewState
    selected_point: Optional[InspectionPoint]

    def __init__(
        self,
        settings: Optional[ClusterSettings] = None,
        initial: ViewState = INITIAL_VIEW_STATE,
        on_select_point: Optional[DetailCallback] = None,
    ) -> None:
        self.settings = settings or ClusterSettings()
        self.view_state = initial
        self.selected_point = None
        self._on_select_point = on_select_point

    def apply_gesture(self, view_state: ViewState) -> ViewState:
        self.view_state = view_state
        return self.view_state

    def handle_hit(self, hit: Optional[NodeHit], hierarchy: ClusterHierarchy) -> Optional[ViewState]:
        """Dispatch a click result.

        Args:
            hit: Result of hit testing, None for a click on empty map.
            hierarchy: Hierarchy the clicked node belongs to.

        Returns:
            The requested fly-to state for cluster hits, otherwise None.
        """
        if isinstance(hit, ClusterHit):
            node = hit.node
            zoom = expansion_zoom(hierarchy, node.cluster_id, self.settings.expansion_max_zoom)
            self.view_state = self.view_state.fly_to(
                node.longitude, node.latitude, zoom, self.settings.transition_duration_ms
            )
            log.debug("Fly to cluster %s (%d points) at zoom %d", node.cluster_id, node.point_count, zoom)
            return self.view_state
        if isinstance(hit, LeafHit):
            self.selected_point = hit.point
            if self._on_select_point is not None:
                self._on_select_point(hit.point)
        return None

    def clear_selection(self) -> None:
        self.selected_point = None

    def viewport_bbox(self, width_px: int, height_px: int, margin_px: Optional[int] = None) -> BBox:
        """Lon/lat window covering the screen plus a margin against pop-in at the edges.

        Args:
            width_px: Map surface width in pixels.
            height_px: Map surface height in pixels.
            margin_px: Extra pixels on every side, defaults to settings.viewport_margin_px.

        Returns:
            BBox around the current centre (pitch is ignored; rotation uses the screen diagonal).
        """
        if margin_px is None:
            margin_px = self.settings.viewport_margin_px
        state = self.view_state
        projection = get_projection(self.settings.tile_size)
        half_w = width_px / 2
        half_h = height_px / 2
        if state.bearing % 360:
            half_w = half_h = math.hypot(half_w, half_h)
        mpp = projection.meters_per_pixel(state.zoom)
        xs, ys = projection.to_meters([state.longitude], [state.latitude])
        limit = WORLD_WIDTH_M / 2
        dx = (half_w + margin_px) * mpp
        dy = (half_h + margin_px) * mpp
        west, south = projection.to_lonlat(xs[0] - dx, max(-limit, ys[0] - dy))
        east, north = projection.to_lonlat(xs[0] + dx, min(limit, ys[0] + dy))
        if 2 * dx >= WORLD_WIDTH_M:
            west, east = -180.0, 180.0
        else:
            west = state.longitude - (state.longitude - west) % 360
            east = state.longitude + (east - state.longitude) % 360
        return BBox(north=north, south=south, east=east, west=west)
