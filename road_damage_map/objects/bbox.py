class BBox:
    """Axis-aligned bounding box in WGS84.

    Explanation:
    Stores north/south/east/west limits and provides helpers for viewport queries.
    A box whose west edge lies east of its east edge crosses the antimeridian.
    """

    north: float
    south: float
    east: float
    west: float

    def __init__(self, north: float, south: float, east: float, west: float) -> None:
        """Create a bounding box.

        Args:
            north: Northern latitude.
            south: Southern latitude.
            east: Eastern longitude.
            west: Western longitude.
        """
        self.north = north
        self.south = south
        self.east = east
        self.west = west

    @classmethod
    def around(cls, lon: float, lat: float, half_span_deg: float) -> "BBox":
        """Square box of +/- half_span_deg around a position."""
        return cls(
            north=lat + half_span_deg,
            south=lat - half_span_deg,
            east=lon + half_span_deg,
            west=lon - half_span_deg,
        )

    def query_boxes(self) -> list[tuple[float, float, float, float]]:
        """Split into plain (west, south, east, north) boxes inside WGS84 limits.

        Explanation:
        Longitudes are wrapped into [-180, 180]; a span of 360 degrees or more covers
        the whole world and a box crossing the antimeridian becomes two boxes.
        Latitudes are clamped to [-90, 90].

        Returns:
            One or two boxes, empty list if the box has no area in latitude.
        """
        south = max(-90.0, min(90.0, self.south))
        north = max(-90.0, min(90.0, self.north))
        if north < south:
            return []
        if self.east - self.west >= 360.0:
            return [(-180.0, south, 180.0, north)]
        west = _wrap_lon(self.west)
        east = _wrap_lon(self.east)
        if west > east:
            return [(west, south, 180.0, north), (-180.0, south, east, north)]
        return [(west, south, east, north)]

    def contains_point(self, lon: float, lat: float, tol: float = 0.0) -> bool:
        """Check if lon/lat lies inside this box (with tolerance).

        Args:
            lon: Longitude.
            lat: Latitude.
            tol: Margin of error.

        Returns:
            True if point is inside or on the boundary of any of the query boxes.
        """
        return any(
            west - tol <= lon <= east + tol and south - tol <= lat <= north + tol
            for west, south, east, north in self.query_boxes()
        )

    def __str__(self) -> str:
        return f"BBox(north={self.north}, south={self.south}, east={self.east}, west={self.west})"


def _wrap_lon(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0
