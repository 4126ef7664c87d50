from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Any, Mapping, Optional

from road_damage_map.logic.aggregate_counter import AggregateCounter
from road_damage_map.logic.cluster_builder import ClusterBuilder
from road_damage_map.logic.viewport_controller import ViewportController
from road_damage_map.logic.viewport_query import hit_test, query
from road_damage_map.logic.visibility_filter import VisibilityFilter
from road_damage_map.objects.cluster_hierarchy import ClusterHierarchy
from road_damage_map.objects.cluster_node import Node
from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.objects.view_state import ViewState
from road_damage_map.utility.fetch_errors import AuthorizationFailure, DataFetchFailure
from road_damage_map.utility.load_inspection_points import LoadInspectionPoints, PointQuery
from road_damage_map.utility.point_store import PointStore

log = logging.getLogger(__name__)

DEFAULT_VIEWPORT_PX = (1024, 768)


class CaseMapSession:
    """State behind one inspection map view.

    Explanation:
    Holds the current point store, visibility switches, summary counts, cluster
    hierarchy and camera. Fetches may run on worker threads: every search takes a
    ticket and only the newest ticket publishes its result. A hierarchy is built
    completely before it replaces the current one, so readers always see a whole
    hierarchy. Failed fetches set `error_message` and keep the previous state.
    """

    AUTHORIZATION_MESSAGE = "You do not have permission to view this data"

    def __init__(
        self,
        loader: Optional[LoadInspectionPoints] = None,
        settings: Optional[ClusterSettings] = None,
        controller: Optional[ViewportController] = None,
    ) -> None:
        """Wire loader, builder and controller.

        Args:
            loader: Point fetch client (defaults to one built from settings).
            settings: Shared clustering/fetch settings.
            controller: Camera owner (defaults to the initial city-centre view).
        """
        self.settings = settings or ClusterSettings()
        self.loader = loader or LoadInspectionPoints(self.settings)
        self.builder = ClusterBuilder(self.settings)
        self.controller = controller or ViewportController(self.settings)
        self.store = PointStore()
        self.visibility = VisibilityFilter()
        self.summary = AggregateCounter()
        self.hierarchy: ClusterHierarchy = self.builder.build(())
        self.error_message: Optional[str] = None
        self._lock = threading.Lock()
        self._latest_ticket = 0
        self._pending: set[int] = set()
        # bumped whenever a new point set is published
        self._generation = 0

    @property
    def loading(self) -> bool:
        return bool(self._pending)

    # Fetching

    def search(self, point_query: PointQuery) -> bool:
        """Fetch points for a search and publish them if no newer search started.

        Returns:
            True if this search's result became the current state.
        """
        ticket = self._begin_fetch()
        try:
            store = self.loader.fetch(point_query)
        except AuthorizationFailure as exc:
            log.warning("Point fetch refused: %s", exc)
            self._fail_fetch(ticket, self.AUTHORIZATION_MESSAGE)
            return False
        except DataFetchFailure as exc:
            log.error("Point fetch failed: %s", exc)
            self._fail_fetch(ticket, str(exc))
            return False
        else:
            return self.load_store(store, ticket)
        finally:
            self._end_fetch(ticket)

    def submit_search(self, point_query: PointQuery, executor: Executor) -> Future:
        """Run `search` on an executor; the map stays usable while it is outstanding."""
        return executor.submit(self.search, point_query)

    def load_store(self, store: PointStore, ticket: Optional[int] = None) -> bool:
        """Replace the point set, reset visibility and rebuild everything derived from it."""
        if ticket is None:
            ticket = self._begin_fetch()
        try:
            visibility = VisibilityFilter(store.categories)
            hierarchy = self.builder.build(visibility.apply(store))
            summary = AggregateCounter(store)
            with self._lock:
                self._pending.discard(ticket)
                if ticket != self._latest_ticket:
                    log.info("Discarding result of superseded search #%d", ticket)
                    return False
                self.store = store
                self.visibility = visibility
                self.summary = summary
                self.hierarchy = hierarchy
                self.error_message = None
                self._generation += 1
                self.controller.clear_selection()
            return True
        finally:
            self._end_fetch(ticket)

    def _begin_fetch(self) -> int:
        with self._lock:
            self._latest_ticket += 1
            self._pending.add(self._latest_ticket)
            return self._latest_ticket

    def _end_fetch(self, ticket: int) -> None:
        with self._lock:
            self._pending.discard(ticket)

    def _fail_fetch(self, ticket: int, message: str) -> None:
        with self._lock:
            self._pending.discard(ticket)
            if ticket == self._latest_ticket:
                self.error_message = message

    # Visibility

    def set_visible(self, category: str, visible: bool) -> None:
        self.visibility.set_visible(category, visible)
        self._rebuild()

    def toggle_category(self, category: str) -> bool:
        visible = self.visibility.toggle(category)
        self._rebuild()
        return visible

    def set_all_visible(self, visible: bool) -> None:
        self.visibility.set_all_visible(visible)
        self._rebuild()

    def toggle_all(self) -> bool:
        """Side panel's select-all checkbox."""
        visible = not self.visibility.all_selected
        self.set_all_visible(visible)
        return visible

    def _rebuild(self) -> None:
        """Rebuild the hierarchy for the current switches, unless a newer point set lands meanwhile."""
        with self._lock:
            generation = self._generation
            points = self.visibility.apply(self.store)
        hierarchy = self.builder.build(points)
        with self._lock:
            if generation != self._generation:
                log.info("Discarding visibility rebuild for a replaced point set")
                return
            self.hierarchy = hierarchy

    # Viewport

    @property
    def view_state(self) -> ViewState:
        return self.controller.view_state

    def apply_gesture(self, view_state: ViewState) -> ViewState:
        return self.controller.apply_gesture(view_state)

    def visible_nodes(self, width_px: int = DEFAULT_VIEWPORT_PX[0], height_px: int = DEFAULT_VIEWPORT_PX[1]) -> list[Node]:
        return self._visible_nodes(self.hierarchy, width_px, height_px)

    def _visible_nodes(self, hierarchy: ClusterHierarchy, width_px: int, height_px: int) -> list[Node]:
        bbox = self.controller.viewport_bbox(width_px, height_px)
        return query(hierarchy, bbox, self.controller.view_state.zoom)

    def click(
        self,
        longitude: float,
        latitude: float,
        width_px: int = DEFAULT_VIEWPORT_PX[0],
        height_px: int = DEFAULT_VIEWPORT_PX[1],
    ) -> Optional[ViewState]:
        """Handle a map click; returns the fly-to state when a cluster was hit."""
        hierarchy = self.hierarchy
        nodes = self._visible_nodes(hierarchy, width_px, height_px)
        hit = hit_test(nodes, longitude, latitude, self.controller.view_state.zoom, self.settings)
        return self.controller.handle_hit(hit, hierarchy)

    @property
    def selected_attributes(self) -> Optional[Mapping[str, Any]]:
        point = self.controller.selected_point
        return point.attributes if point is not None else None
