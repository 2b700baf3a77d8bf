"""
Run status aggregation for the dashboard.

Two independent, side-effect-free reads per owner:
  - the most recent runs (newest first, capped at RUN_HISTORY_LIMIT)
  - every client_metrics row, summed into one stats triple
Raw status strings are resolved once into a StatusView here, so callers
never branch on the raw text.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aga.core.config import settings
from aga.core.database import AsyncSessionLocal
from aga.models.metrics import ClientMetrics
from aga.models.run import Run, RunStatusValue

logger = logging.getLogger(__name__)


class StatusKind(str, Enum):
    COMPLETED = "completed"
    PROCESSING = "processing"
    FAILED = "failed"
    EXTERNAL_LINK = "external_link"
    OTHER = "other"


@dataclass(frozen=True)
class StatusView:
    kind: StatusKind
    label: str
    href: Optional[str] = None


_KNOWN_STATUSES = {
    RunStatusValue.COMPLETED: StatusKind.COMPLETED,
    RunStatusValue.PROCESSING: StatusKind.PROCESSING,
    RunStatusValue.FAILED: StatusKind.FAILED,
}


def resolve_status(status: Optional[str], run_id: str) -> StatusView:
    raw = status or ""
    if raw.lower() == RunStatusValue.CHECK_INSTANTLY:
        return StatusView(
            kind=StatusKind.EXTERNAL_LINK,
            label="Check Instantly Campaign",
            href=settings.INSTANTLY_CAMPAIGN_URL.format(run_id=run_id),
        )
    kind = _KNOWN_STATUSES.get(raw)
    if kind is not None:
        return StatusView(kind=kind, label=raw)
    return StatusView(kind=StatusKind.OTHER, label=raw)


def time_ago(created_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Coarse relative label for the run list: Just now, 5m ago, 3h ago, 2d ago."""
    if created_at is None:
        return "Just now"
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = int((now - created_at).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


@dataclass(frozen=True)
class RunEntry:
    run_id: str
    status: str
    status_view: StatusView
    created_at: Optional[datetime]
    lead_count: Optional[int]
    source: Optional[str]
    campaign_name: Optional[str]

    @classmethod
    def from_row(cls, run: Run) -> "RunEntry":
        return cls(
            run_id=run.run_id,
            status=run.status,
            status_view=resolve_status(run.status, run.run_id),
            created_at=run.created_at,
            lead_count=run.lead_count,
            source=run.source,
            campaign_name=run.campaign_name,
        )


@dataclass(frozen=True)
class DashboardStats:
    total_messages: int = 0
    hours_saved: int = 0
    money_saved: int = 0

    def to_dict(self) -> dict:
        return {
            "totalMessages": self.total_messages,
            "hoursSaved": self.hours_saved,
            "moneySaved": self.money_saved,
        }


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_metric(value: Any) -> int:
    """Lenient integer parse: leading digits count, anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value else 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def aggregate_metrics(rows: Iterable[Tuple[Any, Any, Any]]) -> DashboardStats:
    """Sum (num_personalized_leads, hours_saved, money_saved) rows."""
    total_messages = hours_saved = money_saved = 0
    for leads, hours, money in rows:
        total_messages += parse_metric(leads)
        hours_saved += parse_metric(hours)
        money_saved += parse_metric(money)
    return DashboardStats(
        total_messages=total_messages,
        hours_saved=hours_saved,
        money_saved=money_saved,
    )


async def fetch_run_history(db: AsyncSession, user_id: str, limit: Optional[int] = None) -> List[RunEntry]:
    result = await db.execute(
        select(Run)
        .where(Run.user_auth_id == user_id)
        .order_by(Run.created_at.desc())
        .limit(limit or settings.RUN_HISTORY_LIMIT)
    )
    return [RunEntry.from_row(run) for run in result.scalars().all()]


async def fetch_client_metrics(db: AsyncSession, user_id: str) -> DashboardStats:
    result = await db.execute(
        select(
            ClientMetrics.num_personalized_leads,
            ClientMetrics.hours_saved,
            ClientMetrics.money_saved,
        ).where(ClientMetrics.user_auth_id == user_id)
    )
    return aggregate_metrics(result.all())


class RunStatusAggregator:
    """Runs the two dashboard reads, each on its own session so they can overlap."""

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal, limit: Optional[int] = None):
        self._session_factory = session_factory
        self._limit = limit

    async def load_runs(self, user_id: str) -> List[RunEntry]:
        async with self._session_factory() as db:
            return await fetch_run_history(db, user_id, self._limit)

    async def load_stats(self, user_id: str) -> DashboardStats:
        async with self._session_factory() as db:
            return await fetch_client_metrics(db, user_id)

    async def refresh(self, user_id: str) -> Tuple[Optional[List[RunEntry]], Optional[DashboardStats]]:
        """
        Both reads concurrently; returns once both settle. A failed read
        comes back as None and is logged, the other read is unaffected.
        """
        runs, stats = await asyncio.gather(
            self.load_runs(user_id),
            self.load_stats(user_id),
            return_exceptions=True,
        )
        if isinstance(runs, BaseException):
            logger.error(f"[Dashboard] Error fetching run history: {runs}", extra={"user_id": user_id})
            runs = None
        if isinstance(stats, BaseException):
            logger.error(f"[Dashboard] Error fetching client metrics: {stats}", extra={"user_id": user_id})
            stats = None
        return runs, stats
