"""
Realtime Sync Client: keeps one dashboard session in step with the runs table.

Holds one change-feed subscription per mounted session. Every event, of any
type and for any owner, triggers a full refresh of that session; there is
no incremental patching.
"""
import asyncio
import logging
from typing import Optional

from aga.services.change_feed import ChangeFeed, Subscription
from aga.services.dashboard import DashboardSession

logger = logging.getLogger(__name__)


class RealtimeSyncClient:
    def __init__(self, feed: ChangeFeed, session: DashboardSession):
        self._feed = feed
        self._session = session
        self._subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None
        self.events_received = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._subscription = await self._feed.subscribe()
        self._task = asyncio.ensure_future(self._listen(self._subscription))
        logger.info(f"[Realtime] Subscribed dashboard for {self._session.user_id}")

    async def _listen(self, subscription: Subscription) -> None:
        async for event in subscription:
            self.events_received += 1
            logger.debug(
                f"[Realtime] Run update received: {event.event_type} {event.run_id}",
                extra={"run_id": event.run_id, "user_id": self._session.user_id},
            )
            try:
                await self._session.refresh()
            except Exception as exc:
                logger.error(f"[Realtime] Refresh after change event failed: {exc}", exc_info=True)

    async def stop(self) -> None:
        """Release the subscription. Safe to call more than once."""
        task, self._task = self._task, None
        subscription, self._subscription = self._subscription, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if subscription is not None:
            await subscription.close()
            logger.info(f"[Realtime] Unsubscribed dashboard for {self._session.user_id}")

    async def __aenter__(self) -> "RealtimeSyncClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
