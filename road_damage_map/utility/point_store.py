from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

import polars as pl

from road_damage_map.objects.inspection_point import InspectionPoint

log = logging.getLogger(__name__)


class PointStore:
    """Validated, immutable set of fetched inspection points.

    Explanation:
    Built wholesale from fetched records; records with unusable coordinates are
    dropped and counted in `dropped_count`. Never mutated, a new fetch gives a new store.
    """

    LONGITUDE_FIELD = "longitude"
    LATITUDE_FIELD = "latitude"
    CATEGORY_FIELD = "damageCondition"
    CATEGORY_CODE_FIELD = "damageCondition_code"

    points: tuple[InspectionPoint, ...]
    dropped_count: int

    def __init__(self, points: Iterable[InspectionPoint] = (), dropped_count: int = 0) -> None:
        self.points = tuple(points)
        self.dropped_count = dropped_count

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]], id_field: str = "inspectionNumber") -> "PointStore":
        """Validate raw records and wrap the valid ones as points.

        Args:
            records: Decoded JSON objects as returned by the case API.
            id_field: Record key holding the point identifier; rows without it fall back
                to their position in the response.

        Returns:
            PointStore with valid points in response order and the number of dropped records.
        """
        if not records:
            return cls()
        records = [r if isinstance(r, Mapping) else {} for r in records]

        frame = pl.DataFrame(
            {
                "row": list(range(len(records))),
                "lon_raw": [_as_text(r.get(cls.LONGITUDE_FIELD)) for r in records],
                "lat_raw": [_as_text(r.get(cls.LATITUDE_FIELD)) for r in records],
            },
            schema={"row": pl.Int64, "lon_raw": pl.Utf8, "lat_raw": pl.Utf8},
        )
        frame = frame.with_columns(
            [
                pl.col("lon_raw").str.strip_chars().str.replace(",", ".").cast(pl.Float64, strict=False).alias("longitude"),
                pl.col("lat_raw").str.strip_chars().str.replace(",", ".").cast(pl.Float64, strict=False).alias("latitude"),
            ]
        )
        valid = frame.filter(
            pl.col("longitude").is_not_null()
            & pl.col("latitude").is_not_null()
            & pl.col("longitude").is_finite()
            & pl.col("latitude").is_finite()
            & (pl.col("longitude") >= -180.0)
            & (pl.col("longitude") <= 180.0)
            & (pl.col("latitude") >= -90.0)
            & (pl.col("latitude") <= 90.0)
        )

        points: list[InspectionPoint] = []
        seen_ids: set[str] = set()
        duplicates = 0
        for row, lon, lat in valid.select(["row", "longitude", "latitude"]).iter_rows():
            record = records[row]
            raw_id = record.get(id_field)
            point_id = str(raw_id) if raw_id not in (None, "") else f"row-{row}"
            if point_id in seen_ids:
                duplicates += 1
                continue
            seen_ids.add(point_id)
            points.append(
                InspectionPoint(
                    point_id=point_id,
                    longitude=lon,
                    latitude=lat,
                    category=str(record.get(cls.CATEGORY_FIELD) or ""),
                    category_code=str(record.get(cls.CATEGORY_CODE_FIELD) or ""),
                    attributes=dict(record),
                )
            )

        dropped = len(records) - len(points)
        if dropped:
            log.warning(
                "Dropped %d of %d inspection records (%d invalid coordinates, %d duplicate ids)",
                dropped, len(records), dropped - duplicates, duplicates,
            )
        return cls(points, dropped_count=dropped)

    @property
    def categories(self) -> list[str]:
        """Categories in order of first appearance."""
        return list(dict.fromkeys(p.category for p in self.points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    return str(value)
