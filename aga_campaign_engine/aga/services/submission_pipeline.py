"""
Campaign Submission Pipeline: turns one validated submission into records
plus one workflow trigger.

Strictly sequential, each step waits on the previous one:
  1. final name-uniqueness gate
  2. campaign row
  3. campaign_leads placeholder (needs the campaign id)
  4. run row, status "In Queue" (fresh run id)
  5. webhook payload (needs all three ids)
  6. payload snapshot onto the campaign (best-effort)
  7. POST to the workflow engine
  8. notifications for the user

Steps 2-4 each commit on their own. A failure in 1-4 raises and stops the
pipeline, and whatever already committed stays (no compensating deletes).
A failed trigger (7) is only a warning: the campaign and its run remain
visible and deletable in "In Queue".
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.exceptions import (
    DuplicateCampaignNameError,
    RecordCreationError,
    SubmissionValidationError,
)
from aga.models.campaign import Campaign, CampaignLead, LeadSource
from aga.models.run import Run, RunStatusValue
from aga.schemas.campaign import CampaignSubmission
from aga.services.change_feed import ChangeFeed, ChangeType, publish_run_change
from aga.services.csv_validation import CsvFlow, validate_csv_columns
from aga.services.name_check import campaign_name_exists
from aga.services.notifications import Notification, Variant
from aga.services.profiles import UserContext, get_prompt_override
from aga.services.prompts import CUSTOM_STRATEGY
from aga.services.webhook_payload import (
    LeadFile,
    PromptOverrides,
    ResolvedPrompts,
    build_webhook_payload,
    resolve_prompts,
)
from aga.services.workflow_client import TriggerOutcome, trigger_workflow

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    campaign: Dict[str, Any]
    campaign_lead_id: uuid.UUID
    run_id: str
    payload: Dict[str, Any]
    trigger: TriggerOutcome
    notifications: List[Notification] = field(default_factory=list)


def validate_submission(submission: CampaignSubmission, lead_file: Optional[LeadFile]) -> None:
    """Input gate for the parts the form model cannot check on its own (the CSV file)."""
    if submission.lead_source != LeadSource.CSV:
        return
    if lead_file is None or not lead_file.content:
        raise SubmissionValidationError("Please upload a CSV file with your leads.", title="Missing CSV File")
    check = validate_csv_columns(lead_file.content, CsvFlow.STANDARD)
    if not check.valid:
        raise SubmissionValidationError(
            check.error or "Invalid CSV file",
            title="Invalid CSV File",
            missing_columns=check.missing_columns,
        )


async def _resolve_prompts(
    db: AsyncSession,
    user: UserContext,
    submission: CampaignSubmission,
    power_user_mode: bool,
) -> ResolvedPrompts:
    overrides = None
    if power_user_mode and submission.personalization_strategy == CUSTOM_STRATEGY:
        try:
            saved = await get_prompt_override(db, user.user_id)
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning(
                f"[Submission] Could not load prompt overrides, using defaults: {exc}",
                extra={"user_id": user.user_id},
            )
            saved = None
        if saved is not None:
            overrides = PromptOverrides(
                task=saved.prompt_task,
                guidelines=saved.prompt_guidelines,
                example=saved.prompt_example,
            )
    try:
        return resolve_prompts(
            power_user_mode,
            strategy=submission.personalization_strategy,
            custom_prompt=submission.custom_prompt,
            overrides=overrides,
        )
    except ValueError as exc:
        raise SubmissionValidationError(str(exc), title="Invalid Personalization Strategy")


async def _commit_or_raise(db: AsyncSession, what: str, log_extra: dict) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"[Submission] {what} creation error: {exc}", exc_info=True, extra=log_extra)
        raise RecordCreationError(f"Failed to create {what}: {exc}")


def _campaign_snapshot(campaign: Campaign) -> Dict[str, Any]:
    # Plain copy taken right after the insert; a later rollback expires the ORM object
    return {
        "id": campaign.id,
        "name": campaign.name,
        "source": campaign.source,
        "lead_count": campaign.lead_count,
        "personalization_strategy": campaign.personalization_strategy,
        "custom_prompt": campaign.custom_prompt,
        "instantly_campaign_id": campaign.instantly_campaign_id,
        "completed_count": campaign.completed_count,
        "webhook_payload": None,
        "created_at": campaign.created_at,
    }


def _trigger_notifications(outcome: TriggerOutcome) -> List[Notification]:
    if outcome.ok:
        notice = Notification(
            title="Webhook Triggered",
            description="Campaign created and webhook triggered successfully!",
        )
    elif outcome.status_code is not None:
        notice = Notification(
            title="Webhook Warning",
            description=(
                f"Webhook call failed ({outcome.status_code}). "
                "Campaign created but webhook not triggered."
            ),
            variant=Variant.DESTRUCTIVE,
        )
    else:
        notice = Notification(
            title="Webhook Error",
            description="Campaign created but webhook failed to trigger. Please check your webhook URL.",
            variant=Variant.DESTRUCTIVE,
        )
    return [
        notice,
        Notification(title="Success!", description="Your lead enrichment has been submitted successfully."),
    ]


async def submit_campaign(
    db: AsyncSession,
    user: UserContext,
    submission: CampaignSubmission,
    lead_file: Optional[LeadFile] = None,
    feed: Optional[ChangeFeed] = None,
) -> SubmissionResult:
    validate_submission(submission, lead_file)

    power_user_mode = (
        submission.power_user_mode if submission.power_user_mode is not None else user.is_power_user
    )
    prompts = await _resolve_prompts(db, user, submission, power_user_mode)
    is_apollo = submission.lead_source == LeadSource.APOLLO
    source_label = LeadSource.LABELS[submission.lead_source]
    log_extra = {"user_id": user.user_id, "campaign_name": submission.campaign_name}

    # 1. Final gate. Not atomic with the insert below, see DESIGN.md.
    if await campaign_name_exists(db, submission.campaign_name, user.user_id):
        raise DuplicateCampaignNameError()

    # 2. Campaign
    campaign = Campaign(
        id=uuid.uuid4(),
        user_auth_id=user.user_id,
        name=submission.campaign_name,
        source=source_label,
        lead_count=submission.lead_count if is_apollo else None,
        personalization_strategy=prompts.strategy if power_user_mode else None,
        custom_prompt=submission.custom_prompt if prompts.strategy == CUSTOM_STRATEGY else None,
        instantly_campaign_id=submission.instantly_campaign_id if submission.send_to_instantly else None,
        completed_count=0,
    )
    db.add(campaign)
    await _commit_or_raise(db, "campaign record", log_extra)
    snapshot = _campaign_snapshot(campaign)
    campaign_id = snapshot["id"]
    log_extra["campaign_id"] = str(campaign_id)
    logger.info(f"[Submission] Campaign created: {campaign_id} by {user.user_id}", extra=log_extra)

    # 3. Lead placeholder
    campaign_lead_id = uuid.uuid4()
    db.add(CampaignLead(
        id=campaign_lead_id,
        campaign_id=campaign_id,
        lead_data={},
        apollo_cache={} if is_apollo else None,
        csv_cache={} if not is_apollo else None,
    ))
    await _commit_or_raise(db, "campaign lead", log_extra)

    # 4. Run
    run_id = str(uuid.uuid4())
    db.add(Run(
        run_id=run_id,
        status=RunStatusValue.IN_QUEUE,
        lead_count=submission.lead_count if is_apollo else None,
        source=source_label,
        campaign_name=snapshot["name"],
        user_auth_id=user.user_id,
    ))
    await _commit_or_raise(db, "run record", log_extra)
    log_extra["run_id"] = run_id
    await publish_run_change(feed, ChangeType.INSERT, run_id)

    # 5. Payload
    payload = build_webhook_payload(
        lead_source=submission.lead_source,
        run_id=run_id,
        campaign_name=snapshot["name"],
        campaign_id=str(campaign_id),
        campaign_leads_id=str(campaign_lead_id),
        user_id=user.user_id,
        prompts=prompts,
        apollo_url=submission.apollo_url,
        lead_count=submission.lead_count,
        lead_file=lead_file,
        instantly_campaign_id=snapshot["instantly_campaign_id"],
        demo=submission.demo,
    )
    persisted = payload.to_json()

    # 6. Audit copy, best-effort
    try:
        await db.execute(
            update(Campaign).where(Campaign.id == campaign_id).values(webhook_payload=persisted)
        )
        await db.commit()
        snapshot["webhook_payload"] = persisted
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            f"[Submission] Failed to update campaign with webhook payload: {exc}",
            exc_info=True,
            extra=log_extra,
        )

    # 7. Trigger
    outcome = await trigger_workflow(payload)

    return SubmissionResult(
        campaign=snapshot,
        campaign_lead_id=campaign_lead_id,
        run_id=run_id,
        payload=persisted,
        trigger=outcome,
        notifications=_trigger_notifications(outcome),
    )
