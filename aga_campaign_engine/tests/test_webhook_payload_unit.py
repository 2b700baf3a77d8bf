"""Unit tests for prompt resolution and the workflow webhook payload."""

import pytest

from aga.services.prompts import (
    ACHIEVEMENTS_PERSONALIZATION_PROMPT,
    ACHIEVEMENTS_RESEARCH_PROMPT,
    DEFAULT_PROMPT_EXAMPLE,
    DEFAULT_PROMPT_GUIDELINES,
    DEFAULT_PROMPT_TASK,
    NEWS_PERSONALIZATION_PROMPT,
)
from aga.services.webhook_payload import (
    CSV_FILE_FIELD,
    LeadFile,
    PromptOverrides,
    build_webhook_payload,
    encode_form_value,
    resolve_prompts,
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def standard_prompts():
    return resolve_prompts(power_user_mode=False)


@pytest.fixture
def lead_file():
    return LeadFile(filename="leads.csv", content=b"First Name,Last Name\nAda,Lovelace\n")


def _ids():
    return {
        "run_id": "run-1",
        "campaign_name": "Q3 Outreach",
        "campaign_id": "camp-1",
        "campaign_leads_id": "lead-1",
        "user_id": "user-1",
    }


# =============================================================================
# PROMPT RESOLUTION
# =============================================================================


class TestResolvePrompts:
    """Tests for resolve_prompts."""

    def test_standard_mode_uses_defaults(self, standard_prompts):
        """Standard mode always sends the company-achievements prompts."""
        assert standard_prompts.strategy == "company-achievements"
        assert standard_prompts.personalization_prompt == ACHIEVEMENTS_PERSONALIZATION_PROMPT
        assert standard_prompts.research_prompt == ACHIEVEMENTS_RESEARCH_PROMPT
        assert standard_prompts.task == DEFAULT_PROMPT_TASK

    def test_standard_mode_ignores_power_user_inputs(self):
        """Strategy, custom prompt and overrides are dropped outside power-user mode."""
        prompts = resolve_prompts(
            power_user_mode=False,
            strategy="custom",
            custom_prompt="Write about their dog",
            overrides=PromptOverrides(task="my task"),
        )

        assert prompts.strategy == "company-achievements"
        assert prompts.task == DEFAULT_PROMPT_TASK

    def test_catalog_strategy(self):
        """A catalog strategy brings its own personalization prompt."""
        prompts = resolve_prompts(power_user_mode=True, strategy="recent-news")

        assert prompts.strategy == "recent-news"
        assert prompts.personalization_prompt == NEWS_PERSONALIZATION_PROMPT

    def test_custom_strategy_uses_overrides_per_field(self):
        """Saved overrides win; missing fields fall back to the defaults."""
        prompts = resolve_prompts(
            power_user_mode=True,
            strategy="custom",
            custom_prompt="Mention their latest hire",
            overrides=PromptOverrides(task="Short opener", guidelines=None, example=""),
        )

        assert prompts.personalization_prompt == "Mention their latest hire"
        assert prompts.task == "Short opener"
        assert prompts.guidelines == DEFAULT_PROMPT_GUIDELINES
        assert prompts.example == DEFAULT_PROMPT_EXAMPLE

    def test_custom_strategy_requires_prompt(self):
        """Custom without instructions is rejected."""
        with pytest.raises(ValueError):
            resolve_prompts(power_user_mode=True, strategy="custom", custom_prompt="  ")

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            resolve_prompts(power_user_mode=True, strategy="horoscopes")


# =============================================================================
# PAYLOAD
# =============================================================================


class TestBuildWebhookPayload:
    """Tests for build_webhook_payload and its two serializers."""

    def test_apollo_payload_fields(self, standard_prompts):
        """Apollo submissions carry the URL and lead count, no file."""
        payload = build_webhook_payload(
            lead_source="apollo",
            prompts=standard_prompts,
            apollo_url="https://app.apollo.io/#/people?x=1",
            lead_count=750,
            **_ids(),
        )
        data, files = payload.to_form()

        assert data["leadSource"] == "apollo"
        assert data["apolloUrl"] == "https://app.apollo.io/#/people?x=1"
        assert data["leadCount"] == "750"
        assert data["rerun"] == "false"
        assert data["campaignName"] == "Q3 Outreach"
        assert data["campaign_leads_id"] == "lead-1"
        assert files == {}
        assert "sendToInstantly" not in data
        assert "demo" not in data

    def test_csv_payload_attaches_file(self, standard_prompts, lead_file):
        """CSV submissions attach the file and persist only its name and size."""
        payload = build_webhook_payload(
            lead_source="csv",
            prompts=standard_prompts,
            lead_file=lead_file,
            **_ids(),
        )
        data, files = payload.to_form()
        persisted = payload.to_json()

        assert files[CSV_FILE_FIELD] == ("leads.csv", lead_file.content, "text/csv")
        assert "apolloUrl" not in data
        assert persisted["csvFileName"] == "leads.csv"
        assert persisted["csvFileSize"] == lead_file.size
        assert CSV_FILE_FIELD not in persisted

    def test_instantly_and_demo_flags(self, standard_prompts):
        """An Instantly id turns on sendToInstantly; demo only appears when set."""
        payload = build_webhook_payload(
            lead_source="apollo",
            prompts=standard_prompts,
            apollo_url="https://app.apollo.io/x",
            lead_count=500,
            instantly_campaign_id="inst-42",
            demo=True,
            **_ids(),
        )
        persisted = payload.to_json()

        assert persisted["sendToInstantly"] is True
        assert persisted["campaignId"] == "inst-42"
        assert persisted["demo"] is True

    def test_form_and_json_agree_on_shared_fields(self, standard_prompts, lead_file):
        """Every persisted field has the same value in the transmitted form."""
        payload = build_webhook_payload(
            lead_source="csv",
            prompts=standard_prompts,
            lead_file=lead_file,
            instantly_campaign_id="inst-1",
            **_ids(),
        )
        data, _ = payload.to_form()
        persisted = payload.to_json()

        for key, value in persisted.items():
            if key in ("csvFileName", "csvFileSize"):
                continue
            assert data[key] == encode_form_value(value)
        assert set(data) == set(persisted) - {"csvFileName", "csvFileSize"}


class TestEncodeFormValue:
    def test_booleans_are_lower_case(self):
        assert encode_form_value(True) == "true"
        assert encode_form_value(False) == "false"

    def test_numbers_become_text(self):
        assert encode_form_value(500) == "500"
