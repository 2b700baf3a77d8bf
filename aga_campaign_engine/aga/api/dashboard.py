"""
Run dashboard: run history, usage stats and campaign cleanup.
Deletions reach every live dashboard of the same owner: optimistic removal
first, then a reconciling refresh.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aga.core.database import get_db, get_session_factory
from aga.core.dependencies import get_current_user
from aga.core.exceptions import CampaignError, as_http_exception
from aga.schemas.campaign import NotificationOut
from aga.schemas.dashboard import DeletionResponse, SnapshotOut
from aga.services.change_feed import ChangeFeed, get_change_feed
from aga.services.dashboard import DashboardSession, dashboard_hub
from aga.services.deletion import DeletionResult, delete_all_campaigns, delete_campaign
from aga.services.profiles import UserContext
from aga.services.run_status import RunStatusAggregator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_aggregator(session_factory: async_sessionmaker = Depends(get_session_factory)) -> RunStatusAggregator:
    return RunStatusAggregator(session_factory=session_factory)


async def _snapshot(user: UserContext, aggregator: RunStatusAggregator) -> SnapshotOut:
    session = DashboardSession(user.user_id, aggregator=aggregator)
    return SnapshotOut.from_snapshot(await session.refresh())


async def _deletion_response(
    result: DeletionResult,
    user: UserContext,
    aggregator: RunStatusAggregator,
) -> DeletionResponse:
    notice = result.notification
    return DeletionResponse(
        notification=NotificationOut(title=notice.title, description=notice.description, variant=notice.variant),
        deleted_campaigns=result.deleted_campaigns,
        removed_run_ids=result.removed_run_ids,
        snapshot=await _snapshot(user, aggregator),
    )


@router.get("", response_model=SnapshotOut)
async def get_dashboard(
    current_user: UserContext = Depends(get_current_user),
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    """Recent runs (newest first) and summed usage stats for the caller."""
    return await _snapshot(current_user, aggregator)


@router.post("/refresh", response_model=SnapshotOut)
async def refresh_dashboard(
    current_user: UserContext = Depends(get_current_user),
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    logger.info("[Dashboard] Manual refresh", extra={"user_id": current_user.user_id})
    return await _snapshot(current_user, aggregator)


@router.delete("/campaigns/{campaign_name}", response_model=DeletionResponse)
async def remove_campaign(
    campaign_name: str,
    run_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    try:
        result = await delete_campaign(db, current_user, campaign_name, run_id, feed)
    except CampaignError as exc:
        raise as_http_exception(exc)

    for removed in result.removed_run_ids:
        await dashboard_hub.run_removed(current_user.user_id, removed)
    return await _deletion_response(result, current_user, aggregator)


@router.delete("/campaigns", response_model=DeletionResponse)
async def remove_all_campaigns(
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    try:
        result = await delete_all_campaigns(db, current_user, feed)
    except CampaignError as exc:
        raise as_http_exception(exc)

    if not result.nothing_to_delete:
        await dashboard_hub.all_removed(current_user.user_id)
    return await _deletion_response(result, current_user, aggregator)
