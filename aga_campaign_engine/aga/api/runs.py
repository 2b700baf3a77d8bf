"""Status callbacks from the workflow engine."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.database import get_db
from aga.core.dependencies import require_workflow_secret
from aga.core.exceptions import RunNotFoundError, as_http_exception
from aga.models.run import Run
from aga.schemas.dashboard import RunStatusUpdate
from aga.services.change_feed import ChangeFeed, ChangeType, get_change_feed, publish_run_change

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/runs", tags=["Runs"])


@router.patch("/{run_id}/status", dependencies=[Depends(require_workflow_secret)])
async def update_run_status(
    run_id: str,
    payload: RunStatusUpdate,
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    result = await db.execute(select(Run).where(Run.run_id == run_id))
    run = result.scalar_one_or_none()
    if not run:
        raise as_http_exception(RunNotFoundError())

    run.status = payload.status
    if payload.lead_count is not None:
        run.lead_count = payload.lead_count
    await db.commit()

    logger.info(f"[Workflow] Run {run_id} -> {payload.status}", extra={"run_id": run_id})
    await publish_run_change(feed, ChangeType.UPDATE, run_id)
    return {"run_id": run_id, "status": run.status, "lead_count": run.lead_count}
