"""
Shared fixtures: inspection points in central Taipei and a seeded random cloud.
"""

import random

import pytest

from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.objects.inspection_point import InspectionPoint


def make_record(case_id, lon, lat, category="pothole", code="C01", **extra):
    record = {
        "inspectionNumber": case_id,
        "longitude": lon,
        "latitude": lat,
        "damageCondition": category,
        "damageCondition_code": code,
        "reportDate": "2024/05/01",
        "district": "Zhongzheng",
        "roadSegment": "Sec. 1, Zhongshan S. Rd.",
    }
    record.update(extra)
    return record


@pytest.fixture
def settings():
    return ClusterSettings()


@pytest.fixture
def make_point():
    """Factory fixture: InspectionPoint with sensible defaults."""
    def _make(point_id, lon, lat, category="pothole", code="C01"):
        return InspectionPoint(
            point_id=point_id,
            longitude=lon,
            latitude=lat,
            category=category,
            category_code=code,
            attributes=make_record(point_id, lon, lat, category, code),
        )
    return _make


@pytest.fixture
def scenario_points(make_point):
    """Two neighbours ~23px apart at zoom 15 and one far-away point."""
    return [
        make_point("a", 121.521, 25.039),
        make_point("b", 121.522, 25.039),
        make_point("c", 121.700, 25.200, category="crack", code="C02"),
    ]


@pytest.fixture
def random_points(make_point):
    rng = random.Random(7)
    categories = [("pothole", "C01"), ("crack", "C02"), ("rutting", "C03")]
    pts = []
    for i in range(300):
        category, code = categories[i % len(categories)]
        pts.append(
            make_point(
                f"p{i:04d}",
                121.45 + rng.random() * 0.15,
                25.00 + rng.random() * 0.10,
                category=category,
                code=code,
            )
        )
    return pts
