from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import folium

from road_damage_map.objects.cluster_node import Node
from road_damage_map.objects.view_state import ViewState
from road_damage_map.utility.marker_style import MarkerStyle, style_for

log = logging.getLogger(__name__)

TILE_URL = "https://wmts.nlsc.gov.tw/wmts/EMAP/default/GoogleMapsCompatible/{z}/{y}/{x}"
TILE_ATTRIBUTION = "©TGOS © 內政部"


def cluster_svg(style: MarkerStyle) -> str:
    """Circle glyph for a cluster marker with its count label."""
    scale = style.icon_width / 2
    return (
        f'<svg width="{style.icon_width:.0f}" height="{style.icon_height:.0f}" '
        f'viewBox="0 0 {style.icon_width:.0f} {style.icon_height:.0f}" xmlns="http://www.w3.org/2000/svg">'
        f'<circle cx="{scale}" cy="{scale}" r="{scale - 2}" fill="{style.fill_color}" stroke="white" stroke-width="2"/>'
        f'<text x="{scale}" y="{scale}" text-anchor="middle" dominant-baseline="central" '
        f'font-size="14" font-weight="bold" fill="black">{style.label}</text>'
        f"</svg>"
    )


def case_popup_html(attributes: Mapping[str, Any], photo_base_url: Optional[str] = None) -> str:
    """Detail popup for a single inspection case."""
    def field(key: str) -> str:
        value = attributes.get(key)
        return html.escape(str(value)) if value is not None else ""

    lines = [
        f"<b>Case: {field('inspectionNumber')}</b>",
        f"Date: {field('reportDate')}",
        f"Address: {field('district')}{field('roadSegment')}",
        f"Condition: {field('damageCondition')} ({field('damageCondition_code')})",
        f"Length: {field('length')} | Width: {field('width')} | Area: {field('area')}",
    ]
    if photo_base_url:
        day = str(attributes.get("reportDate") or "").replace("/", "")
        for key in ("photoBefore", "photoAfter"):
            if attributes.get(key):
                src = f"{photo_base_url.rstrip('/')}/files/img/{day}/{attributes[key]}"
                lines.append(f'<img src="{html.escape(src)}" width="240"/>')
    return "<br/>".join(lines)


def make_map(
    nodes: Sequence[Node],
    view_state: ViewState,
    output: Path,
    photo_base_url: Optional[str] = None,
) -> folium.Map:
    """Render cluster and leaf markers of one viewport into a Folium map."""
    fmap = folium.Map(
        location=[view_state.latitude, view_state.longitude],
        zoom_start=int(view_state.zoom),
        tiles=TILE_URL,
        attr=TILE_ATTRIBUTION,
        max_zoom=19,
    )

    clusters = folium.FeatureGroup(name="Clusters")
    cases = folium.FeatureGroup(name="Cases")
    for node in nodes:
        style = style_for(node)
        if node.is_cluster:
            folium.Marker(
                location=[node.latitude, node.longitude],
                icon=folium.DivIcon(
                    html=cluster_svg(style),
                    icon_size=(style.icon_width, style.icon_height),
                    icon_anchor=(style.icon_width / 2, style.anchor_y),
                ),
                tooltip=f"{node.point_count} cases",
            ).add_to(clusters)
        else:
            folium.Marker(
                location=[node.latitude, node.longitude],
                # icon URLs are web-app relative paths
                icon=folium.DivIcon(
                    html=f'<img src="{html.escape(style.icon_url)}" width="{style.size:.0f}" height="{style.size:.0f}"/>',
                    icon_size=(style.size, style.size),
                    icon_anchor=(style.size / 2, style.size),
                ),
                tooltip=node.point.category,
                popup=folium.Popup(case_popup_html(node.point.attributes, photo_base_url), max_width=300),
            ).add_to(cases)

    clusters.add_to(fmap)
    cases.add_to(fmap)
    folium.LayerControl().add_to(fmap)
    output.parent.mkdir(parents=True, exist_ok=True)
    fmap.save(str(output))
    log.info("Wrote map with %d markers to %s", len(nodes), output)
    return fmap
