from __future__ import annotations

from functools import lru_cache
from typing import Sequence

from pyproj import Transformer

# Web Mercator limits (EPSG:3857)
MAX_MERCATOR_LAT = 85.05112878
WORLD_WIDTH_M = 2 * 20037508.342789244


class WebMercatorProjection:
    """Project WGS84 positions to Web Mercator metres and map pixels.

    Explanation:
    Pixel distances at zoom z are metre distances scaled by tile_size * 2**z / world width,
    so a pixel radius test at any zoom is a metre radius test with a zoom-dependent radius.
    """

    def _init_transformers(self):
        """Create forward/inverse transformers between WGS84 and Web Mercator."""
        fwd = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
        inv = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)
        return fwd, inv

    def __init__(self, tile_size: int = 256) -> None:
        """Set up transformers.

        Args:
            tile_size: Tile edge in pixels, defines the pixel grid per zoom.
        """
        self.tile_size = tile_size
        self.forward_transformer, self.inverse_transformer = self._init_transformers()

    def to_meters(self, lons: Sequence[float], lats: Sequence[float]) -> tuple[list[float], list[float]]:
        """Project lon/lat sequences to EPSG:3857 metres (latitudes clamped to the Mercator limit)."""
        if not lons:
            return [], []
        clamped = [max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat)) for lat in lats]
        xs, ys = self.forward_transformer.transform(list(lons), clamped)
        return list(xs), list(ys)

    def to_lonlat(self, x: float, y: float) -> tuple[float, float]:
        """Inverse-project a single EPSG:3857 position to lon/lat."""
        lon, lat = self.inverse_transformer.transform(x, y)
        return float(lon), float(lat)

    def meters_per_pixel(self, zoom: float) -> float:
        """Size of one map pixel in Mercator metres at a zoom level."""
        return WORLD_WIDTH_M / (self.tile_size * 2 ** zoom)

    def radius_in_meters(self, radius_px: float, zoom: float) -> float:
        return radius_px * self.meters_per_pixel(zoom)


@lru_cache(maxsize=None)
def get_projection(tile_size: int = 256) -> WebMercatorProjection:
    """Shared projection per tile size (transformers are costly to create)."""
    return WebMercatorProjection(tile_size)
