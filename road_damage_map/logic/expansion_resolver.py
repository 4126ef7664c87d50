from __future__ import annotations

from typing import Optional

from road_damage_map.objects.cluster_hierarchy import ClusterHierarchy


class ClusterNotFoundError(KeyError):
    """Cluster id is not part of the given hierarchy."""


def expansion_zoom(hierarchy: ClusterHierarchy, cluster_id: str, max_zoom: Optional[int] = 20) -> int:
    """Lowest zoom at which a cluster no longer shows as one marker.

    Explanation:
    Walks the finer levels from the cluster's own zoom upward and returns the first one
    where its member points are spread over two or more nodes.

    Args:
        hierarchy: Hierarchy the cluster id was taken from.
        cluster_id: Id of a ClusterNode.
        max_zoom: Upper bound for the result (None means no cap).

    Returns:
        Expansion zoom, capped at max_zoom.
    """
    cluster = hierarchy.cluster(cluster_id)
    if cluster is None:
        raise ClusterNotFoundError(cluster_id)

    zoom = hierarchy.max_zoom
    for candidate in range(cluster.zoom + 1, hierarchy.max_zoom + 1):
        level = hierarchy.level(candidate)
        containing = {level.node_of_point(pid).node_id for pid in cluster.member_ids}
        if len(containing) > 1:
            zoom = candidate
            break
    if max_zoom is not None:
        zoom = min(zoom, max_zoom)
    return zoom
