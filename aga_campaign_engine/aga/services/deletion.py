"""
Cascading Deletion Service.

Order is the reverse of creation, dashboard rows first:
    runs  ->  client_metrics  ->  campaign_leads  ->  campaigns
Runs, metrics and leads are best-effort: a failure is logged and the next
step still runs. Only a failure deleting the campaign row itself fails the
operation, which leaves the campaign visible instead of orphaning its leads.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.exceptions import CampaignNotFoundError, DeletionError
from aga.models.campaign import Campaign, CampaignLead
from aga.models.metrics import ClientMetrics
from aga.models.run import Run
from aga.services.change_feed import ChangeFeed, ChangeType, publish_run_change
from aga.services.notifications import Notification
from aga.services.profiles import UserContext

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    notification: Notification
    deleted_campaigns: int = 0
    removed_run_ids: List[str] = field(default_factory=list)
    nothing_to_delete: bool = False
    failed_steps: List[str] = field(default_factory=list)


async def _best_effort(db: AsyncSession, statement, step: str, log_extra: dict) -> bool:
    try:
        await db.execute(statement)
        await db.commit()
        return True
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Deletion] Error deleting {step}: {exc}", exc_info=True, extra=log_extra)
        return False


async def _delete_owning_rows(db: AsyncSession, statement, failure: str, log_extra: dict) -> None:
    try:
        await db.execute(statement)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Deletion] Error deleting campaigns: {exc}", exc_info=True, extra=log_extra)
        raise DeletionError(failure)


async def delete_campaign(
    db: AsyncSession,
    user: UserContext,
    campaign_name: str,
    run_id: Optional[str] = None,
    feed: Optional[ChangeFeed] = None,
) -> DeletionResult:
    """
    Delete the campaign *campaign_name* owned by *user*, with its run, its
    metrics rows and its leads. Without *run_id* every run carrying the
    campaign's name is removed.
    """
    log_extra = {"user_id": user.user_id, "campaign_name": campaign_name, "run_id": run_id}

    try:
        result = await db.execute(
            select(Campaign.id)
            .where(Campaign.name == campaign_name, Campaign.user_auth_id == user.user_id)
            .order_by(Campaign.created_at.desc())
            .limit(1)
        )
        campaign_id: Optional[uuid.UUID] = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Deletion] Error finding campaign: {exc}", exc_info=True, extra=log_extra)
        raise DeletionError("Could not find campaign to delete.")

    if campaign_id is None:
        raise CampaignNotFoundError()
    log_extra["campaign_id"] = str(campaign_id)

    failed: List[str] = []
    removed: List[str] = []

    if run_id:
        run_ids = [run_id]
    else:
        try:
            rows = await db.execute(
                select(Run.run_id).where(Run.campaign_name == campaign_name, Run.user_auth_id == user.user_id)
            )
            run_ids = list(rows.scalars().all())
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(f"[Deletion] Error listing runs: {exc}", exc_info=True, extra=log_extra)
            run_ids = []
            failed.append("runs")

    if run_ids:
        if await _best_effort(
            db,
            delete(Run).where(Run.run_id.in_(run_ids), Run.user_auth_id == user.user_id),
            "run",
            log_extra,
        ):
            removed = run_ids
            for rid in run_ids:
                await publish_run_change(feed, ChangeType.DELETE, rid)
        else:
            failed.append("runs")

        if not await _best_effort(
            db,
            delete(ClientMetrics).where(
                ClientMetrics.run_id.in_(run_ids), ClientMetrics.user_auth_id == user.user_id
            ),
            "client metrics",
            log_extra,
        ):
            failed.append("client_metrics")

    if not await _best_effort(
        db,
        delete(CampaignLead).where(CampaignLead.campaign_id == campaign_id),
        "campaign leads",
        log_extra,
    ):
        failed.append("campaign_leads")

    await _delete_owning_rows(
        db,
        delete(Campaign).where(Campaign.id == campaign_id),
        "Failed to delete campaign. Please try again.",
        log_extra,
    )

    logger.info(f"[Deletion] Campaign '{campaign_name}' deleted", extra=log_extra)
    return DeletionResult(
        notification=Notification(
            title="Campaign Deleted",
            description=f'"{campaign_name}" has been permanently deleted.',
        ),
        deleted_campaigns=1,
        removed_run_ids=removed,
        failed_steps=failed,
    )


async def delete_all_campaigns(
    db: AsyncSession,
    user: UserContext,
    feed: Optional[ChangeFeed] = None,
) -> DeletionResult:
    """Delete every campaign the user owns plus their runs, metrics and leads."""
    log_extra = {"user_id": user.user_id}

    try:
        result = await db.execute(
            select(Campaign.id, Campaign.name).where(Campaign.user_auth_id == user.user_id)
        )
        owned = result.all()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Deletion] Error fetching campaigns: {exc}", exc_info=True, extra=log_extra)
        raise DeletionError("Could not fetch campaigns to delete.")

    if not owned:
        return DeletionResult(
            notification=Notification(title="No Campaigns", description="No campaigns found to delete."),
            nothing_to_delete=True,
        )

    campaign_ids = [row.id for row in owned]
    campaign_names = list({row.name for row in owned})
    failed: List[str] = []
    removed: List[str] = []

    try:
        rows = await db.execute(
            select(Run.run_id).where(
                Run.campaign_name.in_(campaign_names), Run.user_auth_id == user.user_id
            )
        )
        run_ids = list(rows.scalars().all())
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Deletion] Error listing runs: {exc}", exc_info=True, extra=log_extra)
        run_ids = []

    if await _best_effort(
        db,
        delete(Run).where(Run.campaign_name.in_(campaign_names), Run.user_auth_id == user.user_id),
        "runs",
        log_extra,
    ):
        removed = run_ids
        await publish_run_change(feed, ChangeType.DELETE, None)
    else:
        failed.append("runs")

    if not await _best_effort(
        db,
        delete(ClientMetrics).where(ClientMetrics.user_auth_id == user.user_id),
        "client metrics",
        log_extra,
    ):
        failed.append("client_metrics")

    if not await _best_effort(
        db,
        delete(CampaignLead).where(CampaignLead.campaign_id.in_(campaign_ids)),
        "campaign leads",
        log_extra,
    ):
        failed.append("campaign_leads")

    await _delete_owning_rows(
        db,
        delete(Campaign).where(Campaign.user_auth_id == user.user_id),
        "Failed to delete all campaigns. Please try again.",
        log_extra,
    )

    count = len(owned)
    logger.info(f"[Deletion] Deleted {count} campaigns", extra=log_extra)
    return DeletionResult(
        notification=Notification(
            title="All Campaigns Deleted",
            description=f"Successfully deleted {count} campaigns and all associated data.",
        ),
        deleted_campaigns=count,
        removed_run_ids=removed,
        failed_steps=failed,
    )
