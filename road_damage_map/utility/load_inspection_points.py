from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

import requests

from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.utility.fetch_errors import AuthorizationFailure, DataFetchFailure
from road_damage_map.utility.point_store import PointStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointQuery:
    """Search form of the map page.

    Explanation:
    Empty selections mean "no restriction" for the server. Dates are sent as ISO strings.
    """

    report_date_from: date
    report_date_to: date
    pid: Optional[str] = None
    districts: Sequence[str] = field(default_factory=tuple)
    sources: Sequence[str] = field(default_factory=tuple)
    damage_items: Sequence[str] = field(default_factory=tuple)

    def to_payload(self) -> dict:
        """JSON body expected by the case API (selections joined with commas)."""
        return {
            "pid": self.pid,
            "reportDateFrom": self.report_date_from.isoformat(),
            "reportDateTo": self.report_date_to.isoformat(),
            "district": ",".join(self.districts),
            "source": ",".join(self.sources),
            "damageItem": ",".join(self.damage_items),
        }


class LoadInspectionPoints:
    """Fetch inspection cases from the case API and validate them into a PointStore."""

    READ_PATH = "/caseinfor/read"

    def __init__(self, settings: Optional[ClusterSettings] = None, session: Optional[requests.Session] = None) -> None:
        """Configure API endpoint and HTTP session.

        Args:
            settings: Supplies api_base_url, request_timeout_s and id_field.
            session: requests session to reuse (a new one by default).
        """
        self.settings = settings or ClusterSettings()
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return self.settings.api_base_url.rstrip("/") + self.READ_PATH

    def fetch(self, query: PointQuery) -> PointStore:
        """POST the search and return the validated points.

        Args:
            query: Date range and selections of the search form.

        Returns:
            PointStore, possibly empty.

        Raises:
            AuthorizationFailure: Server answered 403.
            DataFetchFailure: Transport error, other error status or malformed body.
        """
        log.info("Fetching inspection points %s..%s", query.report_date_from, query.report_date_to)
        try:
            response = self.session.post(self.url, json=query.to_payload(), timeout=self.settings.request_timeout_s)
        except requests.RequestException as exc:
            raise DataFetchFailure(f"Request to {self.url} failed: {exc}") from exc

        if not response.ok:
            message = _error_text(response)
            if response.status_code == 403:
                raise AuthorizationFailure(message, status_code=403)
            raise DataFetchFailure(message, status_code=response.status_code)

        try:
            records = response.json()
        except ValueError as exc:
            raise DataFetchFailure("Case API returned a body that is not JSON", response.status_code) from exc
        if not isinstance(records, list):
            raise DataFetchFailure("Case API returned an unexpected payload", response.status_code)

        store = PointStore.from_records(records, id_field=self.settings.id_field)
        log.info("Fetched %d inspection points (%d dropped)", len(store), store.dropped_count)
        return store


def _error_text(response: requests.Response) -> str:
    """Server-provided error message, falling back to a generic one."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return "Unknown error occurred"
