"""
Dashboard session state.

A DashboardSession is the in-memory run list + stats owned by one mounted
dashboard (one WebSocket connection, or one HTTP request). Local edits are
advisory: an optimistic removal is always followed by refresh(), which
replaces the projection outright with what the store holds.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Set

from aga.services.run_status import DashboardStats, RunEntry, RunStatusAggregator

logger = logging.getLogger(__name__)

SnapshotListener = Callable[["DashboardSnapshot"], Awaitable[None]]


@dataclass(frozen=True)
class DashboardSnapshot:
    runs: List[RunEntry] = field(default_factory=list)
    stats: DashboardStats = field(default_factory=DashboardStats)


class DashboardSession:
    def __init__(
        self,
        user_id: str,
        aggregator: Optional[RunStatusAggregator] = None,
        on_snapshot: Optional[SnapshotListener] = None,
    ):
        self.user_id = user_id
        self.aggregator = aggregator or RunStatusAggregator()
        self.runs: List[RunEntry] = []
        self.stats = DashboardStats()
        self.refresh_count = 0
        self._on_snapshot = on_snapshot
        self._inflight: Optional[asyncio.Task] = None
        self._rerun = False

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(runs=list(self.runs), stats=self.stats)

    # ── optimistic local edits ──────────────────────────────────────────

    def remove_run(self, run_id: str) -> None:
        self.runs = [run for run in self.runs if run.run_id != run_id]

    def clear(self) -> None:
        self.runs = []
        self.stats = DashboardStats()

    # ── authoritative refresh ───────────────────────────────────────────

    async def refresh(self) -> DashboardSnapshot:
        """
        Reload runs and stats from the store. Calls that arrive while a
        refresh is running join it and schedule exactly one more pass, so a
        burst of change events costs at most two reloads.
        """
        if self._inflight is not None and not self._inflight.done():
            self._rerun = True
        else:
            self._inflight = asyncio.ensure_future(self._refresh_loop())
        await asyncio.shield(self._inflight)
        return self.snapshot()

    async def _refresh_loop(self) -> None:
        while True:
            self._rerun = False
            runs, stats = await self.aggregator.refresh(self.user_id)
            if runs is not None:
                self.runs = runs
            if stats is not None:
                self.stats = stats
            self.refresh_count += 1
            if self._on_snapshot is not None:
                try:
                    await self._on_snapshot(self.snapshot())
                except Exception as exc:
                    logger.warning(f"[Dashboard] Snapshot listener failed: {exc}", extra={"user_id": self.user_id})
            if not self._rerun:
                break


class DashboardHub:
    """Live dashboard sessions by owner, so writes can reach mounted dashboards."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Set[DashboardSession]] = {}

    def mount(self, session: DashboardSession) -> None:
        self._sessions.setdefault(session.user_id, set()).add(session)

    def unmount(self, session: DashboardSession) -> None:
        sessions = self._sessions.get(session.user_id)
        if not sessions:
            return
        sessions.discard(session)
        if not sessions:
            del self._sessions[session.user_id]

    def sessions_for(self, user_id: str) -> List[DashboardSession]:
        return list(self._sessions.get(user_id, ()))

    async def run_removed(self, user_id: str, run_id: str) -> None:
        for session in self.sessions_for(user_id):
            session.remove_run(run_id)
            await session.refresh()

    async def all_removed(self, user_id: str) -> None:
        for session in self.sessions_for(user_id):
            session.clear()
            await session.refresh()


dashboard_hub = DashboardHub()
