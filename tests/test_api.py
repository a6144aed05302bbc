"""Tests for the HTTP API."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from kdpsignal.api import app, get_engine, get_service
from kdpsignal.notifications.engine import GenerationReport
from kdpsignal.notifications.ranker import RankedCandidate
from kdpsignal.notifications.snapshot import SnapshotPayload
from kdpsignal.notifications.summary import NotificationSummary

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def create_payload(asin: str = "B000TEST01") -> SnapshotPayload:
    return SnapshotPayload(
        id="2f1c7a52-7d38-4d3e-9a45-0c1d1f0a9b11",
        asin=asin,
        user_id="user-1",
        status="better",
        net_impact=12.5,
        sentiment="Improving",
        drivers=["BSR improved"],
        confidence="high",
        details={},
        algo_version="notifications.v1",
        created_at=NOW,
    )


class TestApi:
    """Tests for API endpoints with a mocked service."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = MagicMock()
        self.service.list_ranked = AsyncMock(return_value=[RankedCandidate(create_payload(), 74, True)])
        self.service.summary = AsyncMock(return_value=NotificationSummary(as_of=date(2026, 3, 1)))
        self.service.submit_feedback = AsyncMock(return_value={"ok": True})

        self.engine = MagicMock()
        report = GenerationReport()
        report.add(create_payload())
        self.engine.run = AsyncMock(return_value=report)

        app.dependency_overrides[get_service] = lambda: self.service
        app.dependency_overrides[get_engine] = lambda: self.engine
        self.client = TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_list_notifications(self):
        response = self.client.get(
            "/api/notifications",
            params={"user_id": "user-1", "limit": 5, "recommended_only": "true"},
        )

        assert response.status_code == 200
        item = response.json()["items"][0]
        assert item["asin"] == "B000TEST01"
        assert item["score"] == 74
        assert item["recommended"] is True
        self.service.list_ranked.assert_awaited_once_with(
            "user-1", limit=5, asin=None, since=None, recommended_only=True
        )

    def test_list_requires_user(self):
        assert self.client.get("/api/notifications").status_code == 422

    def test_summary(self):
        response = self.client.get("/api/notifications/summary", params={"user_id": "user-1"})

        assert response.status_code == 200
        assert response.json()["as_of"] == "2026-03-01"

    def test_summary_bad_mode(self):
        self.service.summary.side_effect = ValueError("Unknown summary mode: x")

        response = self.client.get(
            "/api/notifications/summary", params={"user_id": "user-1", "mode": "x"}
        )

        assert response.status_code == 400

    def test_feedback(self):
        response = self.client.post(
            "/api/notifications/feedback",
            json={"user_id": "user-1", "snapshot_id": "abc", "action": "helpful"},
        )

        assert response.status_code == 200
        self.service.submit_feedback.assert_awaited_once_with("user-1", "abc", "helpful", "positive")

    @pytest.mark.parametrize("error, status", [
        (LookupError("Snapshot not found"), 404),
        (ValueError("Unknown feedback action"), 400),
    ])
    def test_feedback_errors(self, error, status):
        self.service.submit_feedback.side_effect = error

        response = self.client.post(
            "/api/notifications/feedback",
            json={"user_id": "user-1", "snapshot_id": "abc", "action": "helpful"},
        )

        assert response.status_code == status

    def test_generate(self):
        response = self.client.post("/api/notifications/generate", json={"user_id": "user-1"})

        assert response.status_code == 200
        assert response.json()["counts"]["better"] == 1
        self.engine.run.assert_awaited_once_with(user_id="user-1")

    def test_royalty(self):
        response = self.client.get(
            "/api/royalty",
            params={"price": 9.99, "page_count": 120, "country": "com", "bsr": 15000},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["royalty"]["net_royalty"] == pytest.approx(3.70)
        assert data["income"]["monthly_units"] == 330

    def test_royalty_without_bsr(self):
        response = self.client.get("/api/royalty", params={"price": 9.99})

        assert "income" not in response.json()
