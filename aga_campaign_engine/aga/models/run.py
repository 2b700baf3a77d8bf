from sqlalchemy import Column, String, Integer, DateTime

from aga.core.database import Base, utcnow


class RunStatusValue:
    IN_QUEUE = "In Queue"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CHECK_INSTANTLY = "check instantly campaign"


class Run(Base):
    """Dashboard-facing progress row. Joined to campaigns by name, not by id."""

    __tablename__ = "aga_runs_progress"

    run_id = Column(String(36), primary_key=True)
    status = Column(String(100), nullable=False, default=RunStatusValue.IN_QUEUE)
    lead_count = Column(Integer, nullable=True)
    source = Column(String(50), nullable=True)
    campaign_name = Column(String(255), nullable=True, index=True)
    user_auth_id = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
