from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from aga.schemas.campaign import NotificationOut
from aga.services.dashboard import DashboardSnapshot
from aga.services.run_status import RunEntry, time_ago


class StatusViewOut(BaseModel):
    kind:  str
    label: str
    href:  Optional[str] = None


class RunOut(BaseModel):
    run_id:        str
    status:        str
    status_view:   StatusViewOut
    created_at:    Optional[datetime]
    created_ago:   str
    lead_count:    Optional[int]
    source:        Optional[str]
    campaign_name: Optional[str]

    @classmethod
    def from_entry(cls, entry: RunEntry) -> "RunOut":
        return cls(
            run_id=entry.run_id,
            status=entry.status,
            status_view=StatusViewOut(
                kind=entry.status_view.kind.value,
                label=entry.status_view.label,
                href=entry.status_view.href,
            ),
            created_at=entry.created_at,
            created_ago=time_ago(entry.created_at),
            lead_count=entry.lead_count,
            source=entry.source,
            campaign_name=entry.campaign_name,
        )


class StatsOut(BaseModel):
    totalMessages: int = 0
    hoursSaved:    int = 0
    moneySaved:    int = 0


class SnapshotOut(BaseModel):
    runs:  List[RunOut]
    stats: StatsOut

    @classmethod
    def from_snapshot(cls, snapshot: DashboardSnapshot) -> "SnapshotOut":
        return cls(
            runs=[RunOut.from_entry(entry) for entry in snapshot.runs],
            stats=StatsOut(**snapshot.stats.to_dict()),
        )


class DeletionResponse(BaseModel):
    notification:      NotificationOut
    deleted_campaigns: int
    removed_run_ids:   List[str] = []
    snapshot:          SnapshotOut


class RunStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=100)
    lead_count: Optional[int] = Field(None, ge=0)
