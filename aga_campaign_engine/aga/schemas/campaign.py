from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from aga.core.config import settings
from aga.models.campaign import LeadSource


class CampaignSubmission(BaseModel):
    campaign_name:            str = Field(..., max_length=255)
    lead_source:              str
    apollo_url:               Optional[str] = None
    lead_count:               int = settings.LEAD_COUNT_DEFAULT
    power_user_mode:          Optional[bool] = None   # None = follow the profile flag
    personalization_strategy: Optional[str] = None
    custom_prompt:            Optional[str] = None
    send_to_instantly:        bool = False
    instantly_campaign_id:    Optional[str] = None
    demo:                     bool = False

    @field_validator("campaign_name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Campaign name is required")
        return v

    @field_validator("lead_source")
    @classmethod
    def _known_source(cls, v: str) -> str:
        if v not in (LeadSource.APOLLO, LeadSource.CSV):
            raise ValueError("Lead source must be 'apollo' or 'csv'")
        return v

    @field_validator("lead_count", mode="before")
    @classmethod
    def _clamp_lead_count(cls, v: Any) -> int:
        # Same rule as the form's blur handler: clamp, never reject
        try:
            count = int(str(v).strip())
        except (TypeError, ValueError):
            return settings.LEAD_COUNT_MIN
        if count < settings.LEAD_COUNT_MIN:
            return settings.LEAD_COUNT_MIN
        if count > settings.LEAD_COUNT_MAX:
            return settings.LEAD_COUNT_MAX
        return count

    @model_validator(mode="after")
    def _source_fields(self) -> "CampaignSubmission":
        if self.lead_source == LeadSource.APOLLO and not (self.apollo_url or "").strip():
            raise ValueError("An Apollo URL is required for the Apollo lead source")
        if self.send_to_instantly and not (self.instantly_campaign_id or "").strip():
            raise ValueError("An Instantly campaign id is required to send results to Instantly")
        return self


class NotificationOut(BaseModel):
    title:       str
    description: str
    variant:     str = "default"


class CampaignResponse(BaseModel):
    id:                       uuid.UUID
    name:                     str
    source:                   str
    lead_count:               Optional[int]
    personalization_strategy: Optional[str]
    custom_prompt:            Optional[str]
    instantly_campaign_id:    Optional[str]
    completed_count:          int
    webhook_payload:          Optional[Dict[str, Any]]
    created_at:               datetime

    class Config:
        from_attributes = True


class TriggerOut(BaseModel):
    ok:          bool
    status_code: Optional[int] = None
    error:       Optional[str] = None


class SubmissionResponse(BaseModel):
    campaign:          CampaignResponse
    campaign_lead_id:  uuid.UUID
    run_id:            str
    payload:           Dict[str, Any]
    trigger:           TriggerOut
    notifications:     List[NotificationOut]


class NameCheckResponse(BaseModel):
    name:   str
    exists: bool


class CsvValidationResponse(BaseModel):
    valid:            bool
    error:            Optional[str] = None
    missing_columns:  List[str] = []
    optional_columns: List[str] = []
    row_count:        int = 0


class StrategyOut(BaseModel):
    key:                    str
    label:                  str
    personalization_prompt: Optional[str] = None
    research_prompt:        Optional[str] = None


class PromptOverrideIn(BaseModel):
    prompt_task:       Optional[str] = None
    prompt_guidelines: Optional[str] = None
    prompt_example:    Optional[str] = None


class PromptOverrideOut(BaseModel):
    prompt_task:       str
    prompt_guidelines: str
    prompt_example:    str
    task_overridden:       bool
    guidelines_overridden: bool
    example_overridden:    bool
