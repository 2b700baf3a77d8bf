import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid

from aga.core.database import Base, utcnow


class UserProfile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    is_power_user = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class PromptOverride(Base):
    """Task / guidelines / example saved from the prompt preview, one row per user."""

    __tablename__ = "prompt_overrides"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    prompt_task = Column(Text, nullable=True)
    prompt_guidelines = Column(Text, nullable=True)
    prompt_example = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
