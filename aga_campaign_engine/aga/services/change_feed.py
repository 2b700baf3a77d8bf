"""
Change feed for the runs table.

Every insert / update / delete of a Run made by this service is published
as an opaque RunChangeEvent on one channel. Subscribers get every event for
every owner; scoping happens when they refetch.

Backends:
  redis : redis.asyncio pub/sub, shared by every API worker
  local : in-process fan-out over asyncio queues (single worker, tests)
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import AsyncIterator, Optional, Set

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from aga.core.config import settings
from aga.models.run import Run

logger = logging.getLogger(__name__)

RUNS_TABLE = Run.__tablename__


class ChangeType:
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RunChangeEvent:
    event_type: str
    run_id: Optional[str] = None
    table: str = RUNS_TABLE

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "RunChangeEvent":
        data = json.loads(raw)
        return cls(
            event_type=data.get("event_type", ""),
            run_id=data.get("run_id"),
            table=data.get("table", RUNS_TABLE),
        )


class Subscription(ABC):
    """One listener on the feed. Must be closed to release it."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[RunChangeEvent]:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class ChangeFeed(ABC):
    @abstractmethod
    async def publish(self, event: RunChangeEvent) -> None:
        ...

    @abstractmethod
    async def subscribe(self) -> Subscription:
        ...

    async def close(self) -> None:
        return None


# ─────────────────────────────────────────────────────────────
# LOCAL (IN-PROCESS)
# ─────────────────────────────────────────────────────────────

class LocalSubscription(Subscription):
    def __init__(self, feed: "LocalChangeFeed", queue: asyncio.Queue):
        self._feed = feed
        self._queue = queue

    async def __aiter__(self) -> AsyncIterator[RunChangeEvent]:
        while True:
            yield await self._queue.get()

    async def close(self) -> None:
        self._feed._queues.discard(self._queue)


class LocalChangeFeed(ChangeFeed):
    def __init__(self) -> None:
        self._queues: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    async def publish(self, event: RunChangeEvent) -> None:
        for queue in list(self._queues):
            queue.put_nowait(event)

    async def subscribe(self) -> Subscription:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.add(queue)
        return LocalSubscription(self, queue)


# ─────────────────────────────────────────────────────────────
# REDIS PUB/SUB
# ─────────────────────────────────────────────────────────────

class RedisSubscription(Subscription):
    def __init__(self, pubsub, channel: str):
        self._pubsub = pubsub
        self._channel = channel

    async def __aiter__(self) -> AsyncIterator[RunChangeEvent]:
        async for message in self._pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                yield RunChangeEvent.from_json(message["data"])
            except (TypeError, ValueError):
                logger.warning(f"[Realtime] Ignoring malformed change event: {message.get('data')!r}")

    async def close(self) -> None:
        await self._pubsub.unsubscribe(self._channel)
        await self._pubsub.aclose()


class RedisChangeFeed(ChangeFeed):
    def __init__(self, url: str, channel: str):
        self._redis = aioredis.from_url(url, decode_responses=True)
        self._channel = channel

    async def publish(self, event: RunChangeEvent) -> None:
        await self._redis.publish(self._channel, event.to_json())

    async def subscribe(self) -> Subscription:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        return RedisSubscription(pubsub, self._channel)

    async def close(self) -> None:
        await self._redis.aclose()


@lru_cache
def get_change_feed() -> ChangeFeed:
    """Process-wide feed selected by CHANGE_FEED_BACKEND."""
    if settings.CHANGE_FEED_BACKEND == "local":
        return LocalChangeFeed()
    return RedisChangeFeed(settings.REDIS_URL, settings.CHANGE_FEED_CHANNEL)


async def publish_run_change(feed: Optional[ChangeFeed], event_type: str, run_id: Optional[str]) -> None:
    """Publish after the write has committed. The write stands even if the feed is down."""
    if feed is None:
        return
    try:
        await feed.publish(RunChangeEvent(event_type=event_type, run_id=run_id))
    except (RedisError, OSError) as exc:
        logger.warning(
            f"[Realtime] Could not publish {event_type} for run {run_id}: {exc}",
            extra={"run_id": run_id},
        )
