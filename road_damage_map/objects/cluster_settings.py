from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class ClusterSettings(BaseModel):
    """Configuration for clustering, viewport navigation and point fetching."""
    radius_px: float = Field(40.0, gt=0)
    tile_size: int = Field(256, gt=0)
    min_zoom: int = Field(0, ge=0)
    # highest zoom that is still clustered; the point level sits one above
    cluster_max_zoom: int = Field(16, ge=0)
    expansion_max_zoom: int = 20
    transition_duration_ms: int = 500
    viewport_margin_px: int = 64
    api_base_url: str = "http://localhost:5000"
    request_timeout_s: float = 30.0
    id_field: str = "inspectionNumber"

    @model_validator(mode="after")
    def _check_zoom_range(self) -> "ClusterSettings":
        if self.cluster_max_zoom < self.min_zoom:
            raise ValueError("cluster_max_zoom must not be below min_zoom")
        return self

    @property
    def point_zoom(self) -> int:
        """Zoom level at which every point is shown on its own."""
        return self.cluster_max_zoom + 1


def load_settings(path: Path) -> ClusterSettings:
    """Load settings from JSON file."""
    data = json.loads(path.read_text())
    return ClusterSettings.model_validate(data)
