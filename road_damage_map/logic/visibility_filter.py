from __future__ import annotations

from typing import Iterable

from road_damage_map.objects.inspection_point import InspectionPoint


class VisibilityFilter:
    """Per-category visibility switches feeding the cluster builder.

    Explanation:
    Keeps one flag per damage category seen in the current dataset. Categories never
    seen are visible. `all_selected` is derived from the flags on every read.
    """

    def __init__(self, categories: Iterable[str] = ()) -> None:
        self._visible: dict[str, bool] = {}
        self.reset(categories)

    def reset(self, categories: Iterable[str]) -> None:
        """Start over for a fresh fetch: exactly these categories, all visible."""
        self._visible = {category: True for category in categories}

    def observe(self, categories: Iterable[str]) -> None:
        """Register categories, new ones default to visible."""
        for category in categories:
            self._visible.setdefault(category, True)

    def set_visible(self, category: str, visible: bool) -> None:
        self._visible[category] = bool(visible)

    def toggle(self, category: str) -> bool:
        """Flip one category, returns the new flag."""
        visible = not self.is_visible(category)
        self.set_visible(category, visible)
        return visible

    def set_all_visible(self, visible: bool) -> None:
        for category in list(self._visible):
            self.set_visible(category, visible)

    def is_visible(self, category: str) -> bool:
        return self._visible.get(category, True)

    @property
    def all_selected(self) -> bool:
        return all(self._visible.values())

    @property
    def categories(self) -> list[str]:
        return list(self._visible)

    def visibility(self) -> dict[str, bool]:
        return dict(self._visible)

    def apply(self, inspection_points: Iterable[InspectionPoint]) -> list[InspectionPoint]:
        """Keep only points whose category is visible."""
        return [p for p in inspection_points if self.is_visible(p.category)]
