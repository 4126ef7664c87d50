from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class InspectionPoint:
    """One inspected road-damage record with its map position.

    Explanation:
    Longitude/latitude are WGS84 degrees. `category` is the damage-condition label,
    `category_code` selects the marker icon. `attributes` holds the full record as
    fetched (date, address, measurements, photo references) and is passed through
    to detail views unmodified.
    """

    point_id: str
    longitude: float
    latitude: float
    category: str
    category_code: str
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
