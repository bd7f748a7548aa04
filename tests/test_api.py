"""
Integration tests for FastAPI endpoints.

The app runs against an in-memory SQLite database (see conftest).
"""

import sys
from decimal import Decimal
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402


def post_event(client, event_id, start, end, type="oncall"):
    return client.post("/events", json={"id": event_id, "start": start, "end": end, "type": type})


class TestHealth:
    def test_health_endpoint_returns_ok(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers


class TestEventRoutes:
    def test_create_event(self, test_client):
        response = post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")

        assert response.status_code == 201
        data = response.json()
        assert data["event"]["id"] == "oc1"
        assert data["event"]["type"] == "oncall"
        assert data["sub_interval_count"] == 2
        assert data["ripple"] is None

    def test_create_generates_id(self, test_client):
        response = test_client.post(
            "/events", json={"start": "2025-01-04T10:00:00", "end": "2025-01-04T12:00:00", "type": "incident"}
        )
        assert response.status_code == 201
        assert response.json()["event"]["id"]

    def test_duplicate_id_is_rejected(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        response = post_event(test_client, "oc1", "2025-01-05T10:00:00", "2025-01-05T12:00:00")
        assert response.status_code == 409

    def test_end_before_start_is_rejected(self, test_client):
        response = post_event(test_client, "oc1", "2025-01-04T12:00:00", "2025-01-04T10:00:00")
        assert response.status_code == 422

    def test_utc_offset_is_rejected(self, test_client):
        response = post_event(test_client, "oc1", "2025-01-06T21:00:00-05:00", "2025-01-06T23:00:00-05:00")
        assert response.status_code == 422
        assert test_client.get("/events").json() == []

    def test_unknown_type_is_rejected(self, test_client):
        response = post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00", type="vacation")
        assert response.status_code == 422

    def test_list_events(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        post_event(test_client, "h1", "2025-01-01T00:00:00", "2025-01-01T23:59:00", type="holiday")

        everything = test_client.get("/events").json()
        holidays = test_client.get("/events", params={"type": "holiday"}).json()

        assert [e["id"] for e in everything] == ["h1", "oc1"]
        assert [e["id"] for e in holidays] == ["h1"]

    def test_holiday_creation_reports_ripple(self, test_client):
        post_event(test_client, "oc1", "2025-01-06T10:00:00", "2025-01-06T12:00:00")
        response = post_event(test_client, "h1", "2025-01-06T00:00:00", "2025-01-06T23:59:00", type="holiday")

        ripple = response.json()["ripple"]
        assert ripple["mutation"] == "created"
        assert ripple["regenerated"] == ["oc1"]
        assert ripple["failed"] == []

        subs = test_client.get("/events/oc1/sub-intervals").json()
        assert len(subs) == 2
        assert all(s["is_holiday"] for s in subs)

    def test_update_event(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        response = test_client.put(
            "/events/oc1", json={"start": "2025-01-04T10:00:00", "end": "2025-01-04T15:00:00", "type": "oncall"}
        )

        assert response.status_code == 200
        assert response.json()["sub_interval_count"] == 5

    def test_update_id_mismatch(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        response = test_client.put(
            "/events/oc1",
            json={"id": "other", "start": "2025-01-04T10:00:00", "end": "2025-01-04T15:00:00", "type": "oncall"},
        )
        assert response.status_code == 400

    def test_missing_event_returns_404(self, test_client):
        body = {"start": "2025-01-04T10:00:00", "end": "2025-01-04T12:00:00", "type": "oncall"}

        assert test_client.put("/events/nope", json=body).status_code == 404
        assert test_client.delete("/events/nope").status_code == 404
        assert test_client.get("/events/nope/sub-intervals").status_code == 404

    def test_delete_event(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")

        response = test_client.delete("/events/oc1")

        assert response.status_code == 200
        assert test_client.get("/events").json() == []


class TestCompensationRoutes:
    def test_monthly_breakdown(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        post_event(test_client, "i1", "2025-01-04T23:00:00", "2025-01-05T00:00:00", type="incident")

        response = test_client.get("/compensation/2025/1")

        assert response.status_code == 200
        data = response.json()
        assert data["month"] == "2025-01"
        items = {i["category"]: i for i in data["items"]}
        assert Decimal(items["oncall"]["amount"]) == Decimal("14.68")
        assert Decimal(items["incident"]["amount"]) == Decimal("99.624")
        assert Decimal(items["total"]["rounded_amount"]) == Decimal("114.30")
        assert items["total"]["count"] == 2

    def test_empty_month(self, test_client):
        response = test_client.get("/compensation/2025/3")
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_invalid_month(self, test_client):
        assert test_client.get("/compensation/2025/13").status_code == 422

    def test_holiday_deletion_is_reflected_in_breakdown(self, test_client):
        post_event(test_client, "oc1", "2025-01-06T10:00:00", "2025-01-06T12:00:00")
        post_event(test_client, "h1", "2025-01-06T00:00:00", "2025-01-06T23:59:00", type="holiday")
        with_holiday = {i["category"]: i for i in test_client.get("/compensation/2025/1").json()["items"]}

        test_client.delete("/events/h1")
        without_holiday = {i["category"]: i for i in test_client.get("/compensation/2025/1").json()["items"]}

        assert Decimal(with_holiday["oncall"]["amount"]) == Decimal("14.68")
        assert with_holiday["oncall"]["events"][0]["is_holiday"] is True
        assert "oncall" not in without_holiday
        assert Decimal(without_holiday["total"]["amount"]) == 0

    def test_event_summary(self, test_client):
        post_event(test_client, "i1", "2025-01-04T23:00:00", "2025-01-05T00:00:00", type="incident")

        response = test_client.get("/compensation/events/i1")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total"]) == Decimal("99.624")
        assert data["details"][0]["description"] == "Weekend Night Incident"

    def test_event_summary_missing(self, test_client):
        assert test_client.get("/compensation/events/nope").status_code == 404

    def test_cache_invalidate(self, test_client):
        post_event(test_client, "oc1", "2025-01-04T10:00:00", "2025-01-04T12:00:00")
        test_client.get("/compensation/2025/1")

        response = test_client.post("/compensation/cache/invalidate")

        assert response.status_code == 200
        assert response.json() == {"status": "invalidated", "months": ["2025-01"]}
