"""
Workflow Client: fires the lead enrichment job on the workflow engine.
A single multipart POST; any 2xx counts as started. Failures are returned,
never raised: the campaign already exists when this runs.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from aga.core.config import settings
from aga.services.webhook_payload import WebhookPayload

logger = logging.getLogger(__name__)


@dataclass
class TriggerOutcome:
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


async def trigger_workflow(payload: WebhookPayload, url: Optional[str] = None) -> TriggerOutcome:
    """POST *payload* as multipart form data to the workflow webhook."""
    webhook_url = url or settings.WORKFLOW_WEBHOOK_URL
    data, files = payload.to_form()
    log_extra = {"run_id": payload.run_id, "campaign_id": payload.campaign_id}

    logger.info(f"[Workflow] Triggering webhook: {webhook_url}", extra=log_extra)
    try:
        async with httpx.AsyncClient(timeout=settings.WORKFLOW_TIMEOUT) as client:
            response = await client.post(webhook_url, data=data, files=files or None)
    except httpx.HTTPError as exc:
        logger.error(f"[Workflow] Webhook error: {exc}", exc_info=True, extra=log_extra)
        return TriggerOutcome(ok=False, error=str(exc))

    if not response.is_success:
        logger.error(
            f"[Workflow] Webhook failed with status: {response.status_code}",
            extra=log_extra,
        )
        return TriggerOutcome(ok=False, status_code=response.status_code)

    logger.info("[Workflow] Webhook triggered successfully", extra=log_extra)
    return TriggerOutcome(ok=True, status_code=response.status_code)
