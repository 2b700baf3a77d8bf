"""
Live dashboard socket.
WS /api/v1/ws/dashboard?token=<jwt>
Server pushes {"type": "SNAPSHOT", "runs": [...], "stats": {...}} after every
refresh; the client may send {"action": "refresh"}.
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from aga.api.dashboard import get_aggregator
from aga.core.database import get_db
from aga.core.dependencies import get_ws_user
from aga.schemas.dashboard import SnapshotOut
from aga.services.change_feed import ChangeFeed, get_change_feed
from aga.services.dashboard import DashboardSession, DashboardSnapshot, dashboard_hub
from aga.services.realtime_sync import RealtimeSyncClient
from aga.services.run_status import RunStatusAggregator

logger = logging.getLogger(__name__)
router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws/dashboard")
async def dashboard_ws(
    websocket: WebSocket,
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
    aggregator: RunStatusAggregator = Depends(get_aggregator),
):
    await websocket.accept()

    try:
        current_user = await get_ws_user(websocket, db)
    except HTTPException:
        return

    async def push(snapshot: DashboardSnapshot) -> None:
        body = SnapshotOut.from_snapshot(snapshot).model_dump(mode="json")
        await websocket.send_json({"type": "SNAPSHOT", **body})

    session = DashboardSession(current_user.user_id, aggregator=aggregator, on_snapshot=push)
    sync = RealtimeSyncClient(feed, session)
    dashboard_hub.mount(session)
    log_extra = {"user_id": current_user.user_id}
    logger.info("[Dashboard] Socket mounted", extra=log_extra)

    try:
        await sync.start()
        await session.refresh()

        while True:
            try:
                action = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await websocket.send_json({"error": "Invalid JSON", "code": "BAD_REQUEST"})
                continue

            action_type = action.get("action") if isinstance(action, dict) else None
            if action_type == "refresh":
                await session.refresh()
            else:
                await websocket.send_json({
                    "error": f"Unknown action: {action_type}",
                    "code": "UNKNOWN_ACTION",
                })
    except WebSocketDisconnect:
        logger.info("[Dashboard] Socket disconnected", extra=log_extra)
    finally:
        await sync.stop()
        dashboard_hub.unmount(session)
