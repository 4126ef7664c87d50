from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from road_damage_map.objects.inspection_point import InspectionPoint


def counts_by_category(inspection_points: Iterable[InspectionPoint]) -> dict[str, int]:
    """Number of points per category, in order of first appearance."""
    return dict(Counter(p.category for p in inspection_points))


class AggregateCounter:
    """Per-category totals and icon codes for the summary panel.

    Explanation:
    Computed once per point set over every fetched point, independent of visibility
    toggles and of the viewport.
    """

    counts: dict[str, int]
    total: int

    def __init__(self, inspection_points: Iterable[InspectionPoint] = ()) -> None:
        """Tally categories and remember the first icon code seen for each.

        Args:
            inspection_points: Full fetched point set.
        """
        inspection_points = list(inspection_points)
        self.counts = counts_by_category(inspection_points)
        self.total = len(inspection_points)
        self._icons: dict[str, str] = {}
        for point in inspection_points:
            self._icons.setdefault(point.category, point.category_code)

    def counts_by_category(self) -> dict[str, int]:
        return dict(self.counts)

    def icon(self, category: str) -> Optional[str]:
        """Category code used as icon key, None for unknown categories."""
        return self._icons.get(category)
