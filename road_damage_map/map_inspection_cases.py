#!/usr/bin/env python3
"""
Fetch inspection cases, cluster them for one viewport and write an HTML map.

Cases come either from the case API (`POST /caseinfor/read`) or from a JSON dump
of its response (`--input`). The map shows exactly the cluster and case markers
the map view would draw for the given centre, zoom and screen size.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Sequence

from road_damage_map.logic.case_map_session import CaseMapSession
from road_damage_map.objects.cluster_settings import ClusterSettings, load_settings
from road_damage_map.objects.view_state import INITIAL_VIEW_STATE, ViewState
from road_damage_map.utility.load_inspection_points import PointQuery
from road_damage_map.utility.logger_setup import setup_logging
from road_damage_map.utility.point_store import PointStore
from road_damage_map.utility.render_case_map import make_map

DEFAULT_SETTINGS = Path(__file__).with_name("cluster_settings.json")
OUTPUT_DEFAULT = Path("outputs") / "inspection_case_map.html"

log = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    today = date.today().isoformat()
    parser = argparse.ArgumentParser(description="Cluster road-damage inspection cases into an HTML map.")
    parser.add_argument("--settings", type=Path, default=DEFAULT_SETTINGS, help="Cluster settings JSON")
    parser.add_argument("--input", type=Path, help="JSON dump of case records (skips the API)")
    parser.add_argument("--date-from", type=date.fromisoformat, default=today)
    parser.add_argument("--date-to", type=date.fromisoformat, default=today)
    parser.add_argument("--district", nargs="*", default=[], help="Districts to include")
    parser.add_argument("--source", nargs="*", default=[], help="Report sources to include")
    parser.add_argument("--damage-item", nargs="*", default=[], help="Damage items to include")
    parser.add_argument("--pid", help="Requesting principal id")
    parser.add_argument("--hide", nargs="*", default=[], help="Damage categories to hide")
    parser.add_argument("--lon", type=float, default=INITIAL_VIEW_STATE.longitude)
    parser.add_argument("--lat", type=float, default=INITIAL_VIEW_STATE.latitude)
    parser.add_argument("--zoom", type=float, default=INITIAL_VIEW_STATE.zoom)
    parser.add_argument("--width", type=int, default=1024, help="Viewport width in pixels")
    parser.add_argument("--height", type=int, default=768, help="Viewport height in pixels")
    parser.add_argument("--output", type=Path, default=OUTPUT_DEFAULT)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Load cases, build the cluster hierarchy, query the viewport and write the map."""
    args = parse_args(argv)
    setup_logging()
    settings = load_settings(args.settings) if args.settings.exists() else ClusterSettings()
    session = CaseMapSession(settings=settings)

    if args.input:
        records = json.loads(args.input.read_text(encoding="utf-8"))
        session.load_store(PointStore.from_records(records, id_field=settings.id_field))
    else:
        point_query = PointQuery(
            report_date_from=args.date_from,
            report_date_to=args.date_to,
            pid=args.pid,
            districts=tuple(args.district),
            sources=tuple(args.source),
            damage_items=tuple(args.damage_item),
        )
        if not session.search(point_query):
            print(f"Fetching cases failed: {session.error_message}", file=sys.stderr)
            return 1

    for category in args.hide:
        session.set_visible(category, False)

    session.apply_gesture(ViewState(longitude=args.lon, latitude=args.lat, zoom=args.zoom))
    nodes = session.visible_nodes(args.width, args.height)

    print(f"Total cases: {session.summary.total}")
    for category, count in session.summary.counts_by_category().items():
        flag = "x" if session.visibility.is_visible(category) else " "
        print(f"  [{flag}] {category} ({session.summary.icon(category)}): {count}")

    make_map(nodes, session.view_state, args.output, photo_base_url=settings.api_base_url)
    print(f"Wrote map to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
