"""Tests for the notification service layer."""

import json
import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from kdpsignal.notifications.ranker import FeedbackLedger
from kdpsignal.notifications.service import NotificationService
from kdpsignal.notifications.snapshot import SnapshotPayload
from kdpsignal.signals.impact import DriverWeights

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)
SNAPSHOT_ID = uuid.uuid4()


def create_snapshot_row(user_id: str = "user-1") -> MagicMock:
    return MagicMock(
        id=SNAPSHOT_ID,
        user_id=user_id,
        asin="B000TEST01",
        status="better",
        net_impact=12.5,
        sentiment="Improving",
        drivers=json.dumps(["BSR improved"]),
        recommendations=json.dumps([]),
        confidence="high",
        details=json.dumps({}),
        algo_version="notifications.v1",
        created_at=NOW,
    )


def create_payload(asin: str, net_impact: float = 0.0) -> SnapshotPayload:
    return SnapshotPayload(
        asin=asin,
        user_id="user-1",
        status="stable",
        net_impact=net_impact,
        sentiment="Stable trend",
        drivers=[],
        confidence="high",
        details={},
        algo_version="notifications.v1",
        created_at=NOW,
    )


class TestNotificationService:
    """Tests for NotificationService with mocked repositories."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = AsyncMock()
        self.service = NotificationService(self.session)
        self.service.snapshots = AsyncMock()
        self.service.rollups = AsyncMock()
        self.service.feedback = AsyncMock()
        self.service.feedback.get_ledger.return_value = FeedbackLedger()
        self.service.rollups.get_latest_weights.return_value = None

    @pytest.mark.asyncio
    async def test_list_ranked_applies_net_impact_nudge(self):
        self.service.snapshots.get_user_payloads.return_value = [
            create_payload("FLAT"),
            create_payload("UP", net_impact=40.0),
        ]

        ranked = await self.service.list_ranked("user-1", limit=500)

        assert [c.snapshot.asin for c in ranked] == ["UP", "FLAT"]
        assert ranked[0].score == 55
        self.service.snapshots.get_user_payloads.assert_awaited_once_with("user-1", 100, None, None)

    @pytest.mark.asyncio
    async def test_list_ranked_recommended_only(self):
        self.service.snapshots.get_user_payloads.return_value = [create_payload("FLAT")]

        assert await self.service.list_ranked("user-1", recommended_only=True) == []

    @pytest.mark.asyncio
    async def test_summary_clamps_window(self):
        self.service.rollups.get_since.return_value = []

        summary = await self.service.summary("user-1", window_days=365, today=date(2026, 3, 31))

        assert summary.window_days == 90
        self.service.rollups.get_since.assert_awaited_once_with("user-1", date(2025, 12, 31), None)

    @pytest.mark.asyncio
    async def test_summary_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            await self.service.summary("user-1", mode="forever")

    @pytest.mark.asyncio
    async def test_helpful_feedback_updates_ledger_and_weights(self):
        self.service.snapshots.get_by_id.return_value = create_snapshot_row()

        result = await self.service.submit_feedback("user-1", str(SNAPSHOT_ID), "helpful", "positive")

        self.service.feedback.log_event.assert_awaited_once_with(
            SNAPSHOT_ID, "user-1", "B000TEST01", "helpful", "positive"
        )
        self.service.feedback.save_ledger.assert_awaited_once()
        saved_ledger = self.service.feedback.save_ledger.await_args.args[1]
        assert saved_ledger.get("driver", "BSR improved") == {"pos": 1, "neg": 0}

        self.service.rollups.save_weights.assert_awaited_once()
        weights = self.service.rollups.save_weights.await_args.args[3]
        assert isinstance(weights, DriverWeights)
        assert result["ok"] is True
        self.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_click_is_logged_without_touching_ledger(self):
        self.service.snapshots.get_by_id.return_value = create_snapshot_row()

        await self.service.submit_feedback("user-1", str(SNAPSHOT_ID), "clicked")

        self.service.feedback.log_event.assert_awaited_once()
        self.service.feedback.save_ledger.assert_not_awaited()
        self.service.rollups.save_weights.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_users_snapshot_is_not_found(self):
        self.service.snapshots.get_by_id.return_value = create_snapshot_row(user_id="someone-else")

        with pytest.raises(LookupError):
            await self.service.submit_feedback("user-1", str(SNAPSHOT_ID), "helpful")
        self.session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_input(self):
        with pytest.raises(ValueError):
            await self.service.submit_feedback("user-1", str(SNAPSHOT_ID), "shared")
        with pytest.raises(ValueError):
            await self.service.submit_feedback("user-1", str(SNAPSHOT_ID), "helpful", "maybe")
        with pytest.raises(ValueError):
            await self.service.submit_feedback("user-1", "not-a-uuid", "helpful")
