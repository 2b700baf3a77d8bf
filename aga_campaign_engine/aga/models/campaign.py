import uuid

from sqlalchemy import Column, String, Text, Integer, DateTime, JSON, ForeignKey, Index, Uuid

from aga.core.database import Base, utcnow


class LeadSource:
    APOLLO = "apollo"
    CSV = "csv"

    LABELS = {
        APOLLO: "Apollo URL",
        CSV: "CSV Upload",
    }


class Campaign(Base):
    __tablename__ = "campaigns"
    # No unique constraint on (user_auth_id, name): uniqueness is checked by
    # the submission flow only, see DESIGN.md.
    __table_args__ = (Index("ix_campaigns_owner_name", "user_auth_id", "name"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_auth_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    source = Column(String(50), nullable=False)
    lead_count = Column(Integer, nullable=True)
    personalization_strategy = Column(String(100), nullable=True)
    custom_prompt = Column(Text, nullable=True)
    instantly_campaign_id = Column(String(255), nullable=True)
    completed_count = Column(Integer, nullable=False, default=0)
    webhook_payload = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class CampaignLead(Base):
    __tablename__ = "campaign_leads"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    campaign_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lead_data = Column(JSON, nullable=False, default=dict)
    apollo_cache = Column(JSON, nullable=True)
    csv_cache = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
