from sqlalchemy import Column, String, Integer, DateTime

from aga.core.database import Base, utcnow


class ClientMetrics(Base):
    """Usage counters written by the workflow engine.

    Counters are stored as text because the engine does not guarantee
    numeric values; readers parse them leniently.
    """

    __tablename__ = "client_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_auth_id = Column(String(255), nullable=False, index=True)
    run_id = Column(String(36), nullable=True, index=True)
    num_personalized_leads = Column(String(50), nullable=True)
    hours_saved = Column(String(50), nullable=True)
    money_saved = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
