"""
Webhook payload for the workflow engine.

One canonical WebhookPayload record, two serializers:
  - to_form(): multipart form fields + the CSV attachment (what is POSTed)
  - to_json(): JSON-safe mirror stored on campaigns.webhook_payload, with the
    file replaced by its name and size

Both serializers walk the same field table, so every field they share
carries the same value.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from aga.models.campaign import LeadSource
from aga.services.prompts import (
    CUSTOM_STRATEGY,
    DEFAULT_PROMPT_EXAMPLE,
    DEFAULT_PROMPT_GUIDELINES,
    DEFAULT_PROMPT_TASK,
    DEFAULT_STRATEGY,
    get_strategy,
)

CSV_FILE_FIELD = "csvFile"


@dataclass(frozen=True)
class LeadFile:
    filename: str
    content: bytes
    content_type: str = "text/csv"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class PromptOverrides:
    """User-edited task / guidelines / example saved from the prompt preview."""
    task: Optional[str] = None
    guidelines: Optional[str] = None
    example: Optional[str] = None


@dataclass(frozen=True)
class ResolvedPrompts:
    strategy: str
    personalization_prompt: str
    research_prompt: str
    task: str
    guidelines: str
    example: str


def resolve_prompts(
    power_user_mode: bool,
    strategy: Optional[str] = None,
    custom_prompt: Optional[str] = None,
    overrides: Optional[PromptOverrides] = None,
) -> ResolvedPrompts:
    """
    Standard mode ignores every power-user input and returns the defaults.
    Power-user mode takes a catalog strategy's prompts, or for "custom" the
    user's own instruction prompt plus saved overrides (falling back to the
    defaults field by field).
    """
    if not power_user_mode:
        default = get_strategy(DEFAULT_STRATEGY)
        return ResolvedPrompts(
            strategy=DEFAULT_STRATEGY,
            personalization_prompt=default.personalization_prompt,
            research_prompt=default.research_prompt,
            task=DEFAULT_PROMPT_TASK,
            guidelines=DEFAULT_PROMPT_GUIDELINES,
            example=DEFAULT_PROMPT_EXAMPLE,
        )

    key = strategy or DEFAULT_STRATEGY
    if key != CUSTOM_STRATEGY:
        chosen = get_strategy(key)
        return ResolvedPrompts(
            strategy=chosen.key,
            personalization_prompt=chosen.personalization_prompt,
            research_prompt=chosen.research_prompt,
            task=DEFAULT_PROMPT_TASK,
            guidelines=DEFAULT_PROMPT_GUIDELINES,
            example=DEFAULT_PROMPT_EXAMPLE,
        )

    if not custom_prompt or not custom_prompt.strip():
        raise ValueError("A custom strategy requires a custom prompt")

    overrides = overrides or PromptOverrides()
    return ResolvedPrompts(
        strategy=CUSTOM_STRATEGY,
        personalization_prompt=custom_prompt,
        research_prompt=get_strategy(DEFAULT_STRATEGY).research_prompt,
        task=overrides.task or DEFAULT_PROMPT_TASK,
        guidelines=overrides.guidelines or DEFAULT_PROMPT_GUIDELINES,
        example=overrides.example or DEFAULT_PROMPT_EXAMPLE,
    )


# (attribute, wire key) for every field sent in both representations.
SHARED_FIELDS: List[Tuple[str, str]] = [
    ("lead_source", "leadSource"),
    ("run_id", "run_id"),
    ("campaign_name", "campaignName"),
    ("campaign_id", "campaign_id"),
    ("campaign_leads_id", "campaign_leads_id"),
    ("user_id", "user_id"),
    ("rerun", "rerun"),
    ("research_prompt", "perplexityPrompt"),
    ("personalization_prompt", "personalizationPrompt"),
    ("prompt_task", "promptTask"),
    ("prompt_guidelines", "promptGuidelines"),
    ("prompt_example", "promptExample"),
    ("personalization_strategy", "personalizationStrategy"),
    ("apollo_url", "apolloUrl"),
    ("lead_count", "leadCount"),
    ("send_to_instantly", "sendToInstantly"),
    ("instantly_campaign_id", "campaignId"),
    ("demo", "demo"),
]


def encode_form_value(value: Any) -> str:
    """Multipart encoding of a JSON value: booleans lower-case, numbers as text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class WebhookPayload:
    lead_source: str
    run_id: str
    campaign_name: str
    campaign_id: str
    campaign_leads_id: str
    user_id: str
    research_prompt: str
    personalization_prompt: str
    prompt_task: str
    prompt_guidelines: str
    prompt_example: str
    personalization_strategy: str
    rerun: bool = False
    apollo_url: Optional[str] = None
    lead_count: Optional[int] = None
    csv_file: Optional[LeadFile] = field(default=None, repr=False)
    send_to_instantly: Optional[bool] = None
    instantly_campaign_id: Optional[str] = None
    demo: Optional[bool] = None

    def _shared_items(self):
        for attr, key in SHARED_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                yield key, value

    def to_form(self) -> Tuple[Dict[str, str], Dict[str, Tuple[str, bytes, str]]]:
        """(form fields, files) ready for httpx ``data=`` / ``files=``."""
        data = {key: encode_form_value(value) for key, value in self._shared_items()}
        files = {}
        if self.csv_file is not None:
            files[CSV_FILE_FIELD] = (
                self.csv_file.filename,
                self.csv_file.content,
                self.csv_file.content_type,
            )
        return data, files

    def to_json(self) -> Dict[str, Any]:
        body = dict(self._shared_items())
        if self.csv_file is not None:
            body["csvFileName"] = self.csv_file.filename
            body["csvFileSize"] = self.csv_file.size
        return body


def build_webhook_payload(
    *,
    lead_source: str,
    run_id: str,
    campaign_name: str,
    campaign_id: str,
    campaign_leads_id: str,
    user_id: str,
    prompts: ResolvedPrompts,
    apollo_url: Optional[str] = None,
    lead_count: Optional[int] = None,
    lead_file: Optional[LeadFile] = None,
    instantly_campaign_id: Optional[str] = None,
    demo: bool = False,
) -> WebhookPayload:
    """Assemble the payload for a first submission (never a rerun)."""
    payload = WebhookPayload(
        lead_source=lead_source,
        run_id=str(run_id),
        campaign_name=campaign_name,
        campaign_id=str(campaign_id),
        campaign_leads_id=str(campaign_leads_id),
        user_id=str(user_id),
        rerun=False,
        research_prompt=prompts.research_prompt,
        personalization_prompt=prompts.personalization_prompt,
        prompt_task=prompts.task,
        prompt_guidelines=prompts.guidelines,
        prompt_example=prompts.example,
        personalization_strategy=prompts.strategy,
    )

    if lead_source == LeadSource.APOLLO:
        payload.apollo_url = apollo_url
        payload.lead_count = lead_count
    elif lead_source == LeadSource.CSV and lead_file is not None:
        payload.csv_file = lead_file

    if instantly_campaign_id:
        payload.send_to_instantly = True
        payload.instantly_campaign_id = instantly_campaign_id
    if demo:
        payload.demo = True

    return payload
