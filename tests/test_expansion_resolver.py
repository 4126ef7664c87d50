"""
Cluster expansion zoom.
"""

import pytest

from road_damage_map.logic.cluster_builder import build
from road_damage_map.logic.expansion_resolver import ClusterNotFoundError, expansion_zoom


def clusters_of(hierarchy):
    return [n for level in hierarchy.levels.values() for n in level.nodes if n.is_cluster]


class TestExpansionZoom:

    def test_scenario_cluster_expands_at_16(self, scenario_points):
        hierarchy = build(scenario_points)
        assert expansion_zoom(hierarchy, "c15:a") == 16

    def test_result_splits_the_cluster(self, random_points):
        hierarchy = build(random_points)
        for cluster in clusters_of(hierarchy):
            zoom = expansion_zoom(hierarchy, cluster.cluster_id, max_zoom=None)
            assert cluster.zoom < zoom <= hierarchy.max_zoom
            level = hierarchy.level(zoom)
            containing = {level.node_of_point(pid).node_id for pid in cluster.member_ids}
            assert len(containing) > 1
            # still one marker on every level in between
            for between in range(cluster.zoom + 1, zoom):
                inner = hierarchy.level(between)
                assert len({inner.node_of_point(pid).node_id for pid in cluster.member_ids}) == 1

    def test_never_exceeds_cap(self, random_points):
        hierarchy = build(random_points)
        for cluster in clusters_of(hierarchy):
            assert expansion_zoom(hierarchy, cluster.cluster_id, max_zoom=10) <= 10
            assert expansion_zoom(hierarchy, cluster.cluster_id) <= 20

    def test_same_spacing_same_expansion(self, make_point):
        # 0.0005 deg spacing: ~23px at zoom 16, so both groups cluster at 16
        pair = [make_point("a1", 121.5000, 25.0), make_point("a2", 121.5005, 25.0)]
        square = [
            make_point("b1", 122.5000, 25.0),
            make_point("b2", 122.5005, 25.0),
            make_point("b3", 122.5000, 25.0005),
            make_point("b4", 122.5005, 25.0005),
        ]
        hierarchy = build(pair + square)
        level = hierarchy.level(16)
        small = level.node_of_point("a1")
        large = level.node_of_point("b1")
        assert small.point_count == 2
        assert large.point_count == 4
        assert expansion_zoom(hierarchy, small.cluster_id) <= expansion_zoom(hierarchy, large.cluster_id)

    def test_unknown_cluster(self, scenario_points):
        with pytest.raises(ClusterNotFoundError):
            expansion_zoom(build(scenario_points), "c99:nope")

    def test_empty_hierarchy_has_no_clusters(self):
        with pytest.raises(KeyError):
            expansion_zoom(build([]), "c0:a")
