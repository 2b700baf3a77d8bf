"""Unit tests for the workflow trigger client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from aga.services.webhook_payload import LeadFile, build_webhook_payload, resolve_prompts
from aga.services.workflow_client import trigger_workflow


@pytest.fixture
def payload():
    return build_webhook_payload(
        lead_source="csv",
        run_id="run-1",
        campaign_name="Q3 Outreach",
        campaign_id="camp-1",
        campaign_leads_id="lead-1",
        user_id="user-1",
        prompts=resolve_prompts(power_user_mode=False),
        lead_file=LeadFile(filename="leads.csv", content=b"First Name\nAda\n"),
    )


@pytest.fixture
def http_client():
    """Patch httpx.AsyncClient as used by the workflow client."""
    client = AsyncMock()
    with patch("aga.services.workflow_client.httpx.AsyncClient") as client_cls:
        client_cls.return_value.__aenter__.return_value = client
        client.client_cls = client_cls
        yield client


class TestTriggerWorkflow:
    """Tests for trigger_workflow."""

    async def test_posts_multipart_form(self, payload, http_client):
        """Fields go in data=, the CSV in files= under csvFile."""
        http_client.post.return_value = MagicMock(is_success=True, status_code=200)

        outcome = await trigger_workflow(payload, url="http://workflow.test/hook")

        assert outcome.ok is True
        args, kwargs = http_client.post.call_args
        assert args[0] == "http://workflow.test/hook"
        assert kwargs["data"]["leadSource"] == "csv"
        assert kwargs["data"]["run_id"] == "run-1"
        assert kwargs["files"]["csvFile"][0] == "leads.csv"

    async def test_uses_configured_url_by_default(self, payload, http_client):
        http_client.post.return_value = MagicMock(is_success=True, status_code=202)

        await trigger_workflow(payload)

        assert http_client.post.call_args.args[0] == "http://workflow.test/webhook/enrich"

    async def test_no_timeout_unless_configured(self, payload, http_client):
        http_client.post.return_value = MagicMock(is_success=True, status_code=200)

        await trigger_workflow(payload)

        assert http_client.client_cls.call_args.kwargs["timeout"] is None

    async def test_non_2xx_is_reported_not_raised(self, payload, http_client):
        http_client.post.return_value = MagicMock(is_success=False, status_code=502)

        outcome = await trigger_workflow(payload)

        assert outcome.ok is False
        assert outcome.status_code == 502

    async def test_transport_error_is_reported_not_raised(self, payload, http_client):
        http_client.post.side_effect = httpx.ConnectError("connection refused")

        outcome = await trigger_workflow(payload)

        assert outcome.ok is False
        assert outcome.status_code is None
        assert "connection refused" in outcome.error
