"""
Point validation and the case API client.
"""

from datetime import date

import pytest
import requests

from conftest import make_record
from road_damage_map.objects.cluster_settings import ClusterSettings
from road_damage_map.utility.fetch_errors import AuthorizationFailure, DataFetchFailure
from road_damage_map.utility.load_inspection_points import LoadInspectionPoints, PointQuery
from road_damage_map.utility.point_store import PointStore


class FakeResponse:

    def __init__(self, status_code, body=None, raw=None):
        self.status_code = status_code
        self._body = body
        self._raw = raw

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raw is not None:
            raise ValueError("not json")
        return self._body


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def point_query():
    return PointQuery(
        report_date_from=date(2024, 5, 1),
        report_date_to=date(2024, 5, 31),
        pid="P001",
        districts=("Zhongzheng", "Daan"),
        sources=("app",),
    )


class TestPointStore:

    def test_valid_records(self):
        store = PointStore.from_records([make_record("K1", 121.5, 25.0), make_record("K2", "121.6", "25.1")])
        assert len(store) == 2
        assert store.dropped_count == 0
        first, second = store.points
        assert (first.point_id, first.longitude, first.latitude) == ("K1", 121.5, 25.0)
        assert (second.longitude, second.latitude) == (121.6, 25.1)
        assert first.category == "pothole"
        assert first.category_code == "C01"

    def test_invalid_coordinates_are_dropped(self):
        records = [
            make_record("ok", 121.5, 25.0),
            make_record("no-lon", None, 25.0),
            make_record("text", "abc", 25.0),
            make_record("lon-range", 200.0, 25.0),
            make_record("lat-range", 121.5, 95.0),
            make_record("nan", "nan", 25.0),
            "not a record",
        ]
        store = PointStore.from_records(records)
        assert [p.point_id for p in store] == ["ok"]
        assert store.dropped_count == 6

    def test_attributes_are_passed_through(self):
        record = make_record("K1", 121.5, 25.0, photoBefore="before.jpg", area=1.5)
        point = PointStore.from_records([record]).points[0]
        assert point.attributes == record

    def test_missing_and_duplicate_ids(self):
        records = [
            make_record(None, 121.5, 25.0),
            make_record("K1", 121.6, 25.0),
            make_record("K1", 121.7, 25.0),
        ]
        store = PointStore.from_records(records)
        assert [p.point_id for p in store] == ["row-0", "K1"]
        assert store.dropped_count == 1

    def test_categories_in_first_seen_order(self):
        store = PointStore.from_records(
            [make_record("1", 121.5, 25.0, "crack"), make_record("2", 121.5, 25.0, "pothole"), make_record("3", 121.5, 25.0, "crack")]
        )
        assert store.categories == ["crack", "pothole"]

    def test_empty_result(self):
        store = PointStore.from_records([])
        assert len(store) == 0
        assert store.dropped_count == 0


class TestLoadInspectionPoints:

    def test_payload_and_url(self, point_query):
        session = FakeSession(FakeResponse(200, [make_record("K1", 121.5, 25.0)]))
        loader = LoadInspectionPoints(ClusterSettings(api_base_url="http://cases.local/", request_timeout_s=5), session)
        store = loader.fetch(point_query)
        assert len(store) == 1
        call = session.calls[0]
        assert call["url"] == "http://cases.local/caseinfor/read"
        assert call["timeout"] == 5
        assert call["json"] == {
            "pid": "P001",
            "reportDateFrom": "2024-05-01",
            "reportDateTo": "2024-05-31",
            "district": "Zhongzheng,Daan",
            "source": "app",
            "damageItem": "",
        }

    def test_forbidden(self, point_query):
        session = FakeSession(FakeResponse(403, {"error": "no permission"}))
        with pytest.raises(AuthorizationFailure) as excinfo:
            LoadInspectionPoints(session=session).fetch(point_query)
        assert excinfo.value.status_code == 403
        assert str(excinfo.value) == "no permission"

    def test_server_error_message(self, point_query):
        session = FakeSession(FakeResponse(500, {"error": "database down"}))
        with pytest.raises(DataFetchFailure) as excinfo:
            LoadInspectionPoints(session=session).fetch(point_query)
        assert not isinstance(excinfo.value, AuthorizationFailure)
        assert excinfo.value.status_code == 500
        assert str(excinfo.value) == "database down"

    def test_error_without_body(self, point_query):
        session = FakeSession(FakeResponse(502, raw="<html>"))
        with pytest.raises(DataFetchFailure, match="Unknown error occurred"):
            LoadInspectionPoints(session=session).fetch(point_query)

    def test_transport_error(self, point_query):
        session = FakeSession(error=requests.ConnectionError("refused"))
        with pytest.raises(DataFetchFailure, match="refused"):
            LoadInspectionPoints(session=session).fetch(point_query)

    def test_body_not_a_list(self, point_query):
        session = FakeSession(FakeResponse(200, {"rows": []}))
        with pytest.raises(DataFetchFailure):
            LoadInspectionPoints(session=session).fetch(point_query)

    def test_empty_result_is_not_an_error(self, point_query):
        session = FakeSession(FakeResponse(200, []))
        assert len(LoadInspectionPoints(session=session).fetch(point_query)) == 0
