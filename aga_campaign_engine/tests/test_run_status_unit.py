"""Unit tests for run status resolution and dashboard aggregation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from aga.services.run_status import (
    DashboardStats,
    RunStatusAggregator,
    StatusKind,
    aggregate_metrics,
    fetch_run_history,
    parse_metric,
    resolve_status,
    time_ago,
)

from conftest import OTHER_ID, OWNER_ID


class TestResolveStatus:
    """Tests for resolve_status."""

    @pytest.mark.parametrize(
        "raw,kind",
        [
            ("completed", StatusKind.COMPLETED),
            ("processing", StatusKind.PROCESSING),
            ("failed", StatusKind.FAILED),
        ],
    )
    def test_known_statuses(self, raw, kind):
        view = resolve_status(raw, "run-1")

        assert view.kind == kind
        assert view.label == raw
        assert view.href is None

    @pytest.mark.parametrize("raw", ["check instantly campaign", "Check Instantly Campaign", "CHECK INSTANTLY CAMPAIGN"])
    def test_instantly_link_is_case_insensitive(self, raw):
        """The Instantly status becomes a link built from the run id."""
        view = resolve_status(raw, "run-42")

        assert view.kind == StatusKind.EXTERNAL_LINK
        assert view.label == "Check Instantly Campaign"
        assert view.href == "https://app.instantly.ai/app/campaign/run-42/leads"

    def test_unknown_status_shown_verbatim(self):
        view = resolve_status("In Queue", "run-1")

        assert view.kind == StatusKind.OTHER
        assert view.label == "In Queue"

    def test_known_statuses_are_case_sensitive(self):
        """Only the Instantly status ignores case."""
        assert resolve_status("Completed", "run-1").kind == StatusKind.OTHER


class TestAggregateMetrics:
    """Tests for parse_metric and aggregate_metrics."""

    def test_sums_with_lenient_parsing(self):
        """Non-numeric cells count as zero."""
        stats = aggregate_metrics([("2", "1", "10"), ("3", "x", "5")])

        assert stats == DashboardStats(total_messages=5, hours_saved=1, money_saved=15)

    def test_no_rows_is_zero(self):
        assert aggregate_metrics([]) == DashboardStats()

    @pytest.mark.parametrize(
        "value,expected",
        [("42", 42), ("  7 hours", 7), ("12.9", 12), ("-3", -3), ("", 0), (None, 0), ("abc", 0), (5, 5)],
    )
    def test_parse_metric(self, value, expected):
        assert parse_metric(value) == expected

    def test_stats_wire_keys(self):
        assert DashboardStats(1, 2, 3).to_dict() == {"totalMessages": 1, "hoursSaved": 2, "moneySaved": 3}


class TestTimeAgo:
    NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "delta,label",
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=5), "5m ago"),
            (timedelta(hours=3, minutes=59), "3h ago"),
            (timedelta(days=2, hours=1), "2d ago"),
        ],
    )
    def test_labels(self, delta, label):
        assert time_ago(self.NOW - delta, now=self.NOW) == label

    def test_naive_timestamps_are_utc(self):
        naive = (self.NOW - timedelta(minutes=10)).replace(tzinfo=None)

        assert time_ago(naive, now=self.NOW) == "10m ago"

    def test_missing_timestamp(self):
        assert time_ago(None) == "Just now"


class TestRunHistory:
    """Tests for the two dashboard reads."""

    async def test_newest_first_and_owner_scoped(self, db, seed):
        await seed("Old", minutes_ago=30)
        await seed("New", minutes_ago=1)
        await seed("Not mine", user_id=OTHER_ID)

        runs = await fetch_run_history(db, OWNER_ID)

        assert [run.campaign_name for run in runs] == ["New", "Old"]

    async def test_history_is_capped(self, db, seed):
        for i in range(5):
            await seed(f"Campaign {i}", minutes_ago=i)

        runs = await fetch_run_history(db, OWNER_ID, limit=3)

        assert [run.campaign_name for run in runs] == ["Campaign 0", "Campaign 1", "Campaign 2"]

    async def test_aggregator_refresh(self, session_factory, seed):
        await seed("A", status="completed", metrics=("2", "1", "10"))
        await seed("B", status="check instantly campaign", metrics=("3", "x", "5"))

        runs, stats = await RunStatusAggregator(session_factory).refresh(OWNER_ID)

        assert len(runs) == 2
        assert {run.status_view.kind for run in runs} == {StatusKind.COMPLETED, StatusKind.EXTERNAL_LINK}
        assert stats == DashboardStats(total_messages=5, hours_saved=1, money_saved=15)

    async def test_one_failed_read_does_not_block_the_other(self, session_factory, seed):
        """A failing metrics read comes back as None; runs still load."""
        await seed("A")
        aggregator = RunStatusAggregator(session_factory)

        with patch.object(aggregator, "load_stats", side_effect=RuntimeError("metrics down")):
            runs, stats = await aggregator.refresh(OWNER_ID)

        assert stats is None
        assert [run.campaign_name for run in runs] == ["A"]
