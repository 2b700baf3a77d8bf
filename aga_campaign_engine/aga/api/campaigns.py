import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.database import get_db
from aga.core.dependencies import get_current_user
from aga.core.exceptions import (
    CampaignError,
    InvalidRequestError,
    SubmissionValidationError,
    as_http_exception,
)
from aga.schemas.campaign import (
    CampaignResponse,
    CampaignSubmission,
    CsvValidationResponse,
    NameCheckResponse,
    NotificationOut,
    PromptOverrideIn,
    PromptOverrideOut,
    StrategyOut,
    SubmissionResponse,
    TriggerOut,
)
from aga.services.change_feed import ChangeFeed, get_change_feed
from aga.services.csv_validation import CsvFlow, validate_csv_columns
from aga.services.name_check import campaign_name_exists
from aga.services.profiles import UserContext, get_prompt_override, save_prompt_override
from aga.services.prompts import (
    CUSTOM_STRATEGY,
    DEFAULT_PROMPT_EXAMPLE,
    DEFAULT_PROMPT_GUIDELINES,
    DEFAULT_PROMPT_TASK,
    STRATEGIES,
)
from aga.services.submission_pipeline import submit_campaign
from aga.services.webhook_payload import LeadFile

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/campaigns", tags=["Campaigns"])


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid submission"
    message = errors[0].get("msg", "Invalid submission")
    # pydantic prefixes messages raised from validators
    return message.replace("Value error, ", "", 1)


async def _read_lead_file(upload: Optional[UploadFile]) -> Optional[LeadFile]:
    if upload is None:
        return None
    content = await upload.read()
    return LeadFile(
        filename=upload.filename or "leads.csv",
        content=content,
        content_type=upload.content_type or "text/csv",
    )


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    campaign_name: str = Form(...),
    lead_source: str = Form(...),
    apollo_url: Optional[str] = Form(None),
    lead_count: Optional[str] = Form(None),
    power_user_mode: Optional[bool] = Form(None),
    personalization_strategy: Optional[str] = Form(None),
    custom_prompt: Optional[str] = Form(None),
    send_to_instantly: bool = Form(False),
    instantly_campaign_id: Optional[str] = Form(None),
    demo: bool = Form(False),
    csv_file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Submit a lead enrichment campaign: three records, then one workflow trigger."""
    fields = {
        "campaign_name": campaign_name,
        "lead_source": lead_source,
        "apollo_url": apollo_url,
        "power_user_mode": power_user_mode,
        "personalization_strategy": personalization_strategy,
        "custom_prompt": custom_prompt,
        "send_to_instantly": send_to_instantly,
        "instantly_campaign_id": instantly_campaign_id,
        "demo": demo,
    }
    if lead_count is not None:
        fields["lead_count"] = lead_count

    try:
        submission = CampaignSubmission(**fields)
        lead_file = await _read_lead_file(csv_file)
        result = await submit_campaign(db, current_user, submission, lead_file, feed)
    except ValidationError as exc:
        raise as_http_exception(SubmissionValidationError(_first_error(exc)))
    except CampaignError as exc:
        logger.warning(
            f"[Submission] Rejected: {exc.description}",
            extra={"user_id": current_user.user_id, "campaign_name": campaign_name},
        )
        raise as_http_exception(exc)

    return SubmissionResponse(
        campaign=CampaignResponse(**result.campaign),
        campaign_lead_id=result.campaign_lead_id,
        run_id=result.run_id,
        payload=result.payload,
        trigger=TriggerOut(
            ok=result.trigger.ok,
            status_code=result.trigger.status_code,
            error=result.trigger.error,
        ),
        notifications=[
            NotificationOut(title=n.title, description=n.description, variant=n.variant)
            for n in result.notifications
        ],
    )


@router.get("/name-check", response_model=NameCheckResponse)
async def check_campaign_name(
    name: str = Query(""),
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Pre-submit duplicate check. The submission re-runs it as its final gate."""
    exists = await campaign_name_exists(db, name, current_user.user_id)
    return NameCheckResponse(name=name.strip(), exists=exists)


@router.post("/csv/validate", response_model=CsvValidationResponse)
async def validate_csv(
    csv_file: UploadFile = File(...),
    flow: str = Form(CsvFlow.STANDARD),
    current_user: UserContext = Depends(get_current_user),
):
    content = await csv_file.read()
    try:
        result = validate_csv_columns(content, flow)
    except ValueError as exc:
        raise as_http_exception(InvalidRequestError(str(exc), title="Unknown CSV Flow"))
    return CsvValidationResponse(
        valid=result.valid,
        error=result.error,
        missing_columns=result.missing_columns,
        optional_columns=result.optional_columns,
        row_count=result.row_count,
    )


@router.get("/strategies", response_model=List[StrategyOut])
async def list_strategies(current_user: UserContext = Depends(get_current_user)):
    catalog = [
        StrategyOut(
            key=strategy.key,
            label=strategy.label,
            personalization_prompt=strategy.personalization_prompt,
            research_prompt=strategy.research_prompt,
        )
        for strategy in STRATEGIES.values()
    ]
    catalog.append(StrategyOut(key=CUSTOM_STRATEGY, label="Custom"))
    return catalog


def _override_out(override) -> PromptOverrideOut:
    task = override.prompt_task if override else None
    guidelines = override.prompt_guidelines if override else None
    example = override.prompt_example if override else None
    return PromptOverrideOut(
        prompt_task=task or DEFAULT_PROMPT_TASK,
        prompt_guidelines=guidelines or DEFAULT_PROMPT_GUIDELINES,
        prompt_example=example or DEFAULT_PROMPT_EXAMPLE,
        task_overridden=bool(task),
        guidelines_overridden=bool(guidelines),
        example_overridden=bool(example),
    )


@router.get("/prompt-overrides", response_model=PromptOverrideOut)
async def read_prompt_overrides(
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Effective task / guidelines / example for the custom strategy."""
    return _override_out(await get_prompt_override(db, current_user.user_id))


@router.put("/prompt-overrides", response_model=PromptOverrideOut)
async def update_prompt_overrides(
    payload: PromptOverrideIn,
    db: AsyncSession = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    override = await save_prompt_override(
        db,
        current_user.user_id,
        payload.prompt_task,
        payload.prompt_guidelines,
        payload.prompt_example,
    )
    return _override_out(override)
