"""Unit tests for cascading campaign deletion."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import Delete, Select, func, select
from sqlalchemy.exc import OperationalError

from aga.core.exceptions import CampaignNotFoundError, DeletionError
from aga.models.campaign import Campaign, CampaignLead
from aga.models.metrics import ClientMetrics
from aga.models.run import Run
from aga.services.change_feed import ChangeType
from aga.services.deletion import delete_all_campaigns, delete_campaign
from aga.services.run_status import DashboardStats, fetch_client_metrics

from conftest import OTHER_ID, OWNER_ID


async def _count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        query = select(func.count()).select_from(model)
        if where:
            query = query.where(*where)
        return (await session.execute(query)).scalar_one()


def _fail_delete_of(db, table_name: str):
    """Make DELETE statements against *table_name* raise on this session."""
    original_execute = db.execute

    async def execute(statement, *args, **kwargs):
        if isinstance(statement, Delete) and statement.table.name == table_name:
            raise OperationalError(f"DELETE FROM {table_name}", {}, Exception("lock timeout"))
        return await original_execute(statement, *args, **kwargs)

    return patch.object(db, "execute", side_effect=execute)


def _fail_run_lookup(db):
    """Make SELECTs over the runs table raise on this session."""
    original_execute = db.execute

    async def execute(statement, *args, **kwargs):
        if isinstance(statement, Select) and statement.column_descriptions[0]["entity"] is Run:
            raise OperationalError("SELECT run_id FROM aga_runs_progress", {}, Exception("connection reset"))
        return await original_execute(statement, *args, **kwargs)

    return patch.object(db, "execute", side_effect=execute)


# =============================================================================
# SINGLE CAMPAIGN
# =============================================================================


class TestDeleteCampaign:
    """Tests for delete_campaign."""

    async def test_removes_run_metrics_leads_and_campaign(self, db, session_factory, owner, seed):
        seeded = await seed("Q3 Outreach", metrics=("10", "2", "40"))

        result = await delete_campaign(db, owner, "Q3 Outreach", seeded["run_id"])

        assert await _count(session_factory, Campaign) == 0
        assert await _count(session_factory, CampaignLead) == 0
        assert await _count(session_factory, Run) == 0
        assert await _count(session_factory, ClientMetrics) == 0
        assert result.removed_run_ids == [seeded["run_id"]]
        assert result.notification.title == "Campaign Deleted"
        assert result.notification.description == '"Q3 Outreach" has been permanently deleted.'

    async def test_other_campaigns_untouched(self, db, session_factory, owner, seed):
        await seed("Keep me", metrics=("1", "1", "1"))
        doomed = await seed("Delete me", metrics=("2", "2", "2"))
        await seed("Delete me", user_id=OTHER_ID)

        await delete_campaign(db, owner, "Delete me", doomed["run_id"])

        assert await _count(session_factory, Campaign, Campaign.user_auth_id == OWNER_ID) == 1
        assert await _count(session_factory, Campaign, Campaign.user_auth_id == OTHER_ID) == 1
        assert await _count(session_factory, Run, Run.user_auth_id == OTHER_ID) == 1
        stats = await fetch_client_metrics(db, OWNER_ID)
        assert stats == DashboardStats(1, 1, 1)

    async def test_without_run_id_removes_runs_by_name(self, db, session_factory, owner, seed):
        await seed("Q3 Outreach")

        result = await delete_campaign(db, owner, "Q3 Outreach")

        assert await _count(session_factory, Run) == 0
        assert len(result.removed_run_ids) == 1

    async def test_missing_campaign(self, db, owner, seed):
        await seed("Somebody else's", user_id=OTHER_ID)

        with pytest.raises(CampaignNotFoundError) as exc_info:
            await delete_campaign(db, owner, "Somebody else's", "run-x")

        assert exc_info.value.title == "Campaign Not Found"

    async def test_delete_is_published(self, db, owner, seed, feed):
        seeded = await seed("Q3 Outreach")
        subscription = await feed.subscribe()

        await delete_campaign(db, owner, "Q3 Outreach", seeded["run_id"], feed)
        event = await anext(aiter(subscription))
        await subscription.close()

        assert event.event_type == ChangeType.DELETE
        assert event.run_id == seeded["run_id"]

    async def test_lead_failure_still_deletes_campaign(self, db, session_factory, owner, seed):
        """Sub-step failures are logged and skipped; the campaign row goes anyway."""
        seeded = await seed("Q3 Outreach")

        with _fail_delete_of(db, "campaign_leads"):
            result = await delete_campaign(db, owner, "Q3 Outreach", seeded["run_id"])

        assert result.failed_steps == ["campaign_leads"]
        assert await _count(session_factory, Campaign) == 0
        assert await _count(session_factory, Run) == 0

    async def test_run_lookup_failure_still_deletes_campaign(self, db, session_factory, owner, seed):
        """Without a run id, a failed run listing is logged and the cascade continues."""
        await seed("Alpha")

        with _fail_run_lookup(db):
            result = await delete_campaign(db, owner, "Alpha")

        assert result.failed_steps == ["runs"]
        assert result.removed_run_ids == []
        assert result.notification.title == "Campaign Deleted"
        assert await _count(session_factory, Campaign) == 0
        assert await _count(session_factory, CampaignLead) == 0
        assert await _count(session_factory, Run) == 1

    async def test_campaign_failure_raises(self, db, session_factory, owner, seed):
        """Only the final delete is fatal, and earlier steps stay done."""
        seeded = await seed("Q3 Outreach")

        with _fail_delete_of(db, "campaigns"):
            with pytest.raises(DeletionError) as exc_info:
                await delete_campaign(db, owner, "Q3 Outreach", seeded["run_id"])

        assert exc_info.value.description == "Failed to delete campaign. Please try again."
        assert await _count(session_factory, Campaign) == 1
        assert await _count(session_factory, Run) == 0

    async def test_lookup_failure_raises(self, owner):
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DeletionError) as exc_info:
            await delete_campaign(session, owner, "Q3 Outreach", "run-1")

        assert exc_info.value.description == "Could not find campaign to delete."


# =============================================================================
# ALL CAMPAIGNS
# =============================================================================


class TestDeleteAllCampaigns:
    """Tests for delete_all_campaigns."""

    async def test_removes_everything_the_owner_has(self, db, session_factory, owner, seed):
        await seed("One", metrics=("1", "1", "1"))
        await seed("Two", metrics=("2", "2", "2"))
        await seed("Three")
        await seed("Foreign", user_id=OTHER_ID, metrics=("9", "9", "9"))

        result = await delete_all_campaigns(db, owner)

        assert result.deleted_campaigns == 3
        assert result.notification.title == "All Campaigns Deleted"
        assert result.notification.description == "Successfully deleted 3 campaigns and all associated data."
        assert await _count(session_factory, Campaign, Campaign.user_auth_id == OWNER_ID) == 0
        assert await _count(session_factory, Run, Run.user_auth_id == OWNER_ID) == 0
        assert await _count(session_factory, Campaign) == 1
        assert await _count(session_factory, Run) == 1
        assert await _count(session_factory, CampaignLead) == 1

    async def test_stats_reset_to_zero(self, db, owner, seed):
        await seed("One", metrics=("10", "3", "100"))

        await delete_all_campaigns(db, owner)

        assert await fetch_client_metrics(db, OWNER_ID) == DashboardStats()

    async def test_nothing_to_delete(self, db, owner, seed):
        """An empty account is a notice, not an error."""
        await seed("Foreign", user_id=OTHER_ID)

        result = await delete_all_campaigns(db, owner)

        assert result.nothing_to_delete is True
        assert result.deleted_campaigns == 0
        assert result.notification.title == "No Campaigns"
        assert result.notification.description == "No campaigns found to delete."

    async def test_final_failure_raises(self, db, session_factory, owner, seed):
        await seed("One")

        with _fail_delete_of(db, "campaigns"):
            with pytest.raises(DeletionError) as exc_info:
                await delete_all_campaigns(db, owner)

        assert exc_info.value.description == "Failed to delete all campaigns. Please try again."
        assert await _count(session_factory, Run) == 0
        assert await _count(session_factory, Campaign) == 1

    async def test_fetch_failure_raises(self, owner):
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DeletionError) as exc_info:
            await delete_all_campaigns(session, owner)

        assert exc_info.value.description == "Could not fetch campaigns to delete."
