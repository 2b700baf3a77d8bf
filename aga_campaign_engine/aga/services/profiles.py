"""
Session context and per-user settings.

UserContext is built once per request (or per dashboard socket) from the
verified token and the user's profile row, then passed explicitly into
every service call.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aga.core.database import utcnow
from aga.models.user import PromptOverride, UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserContext:
    user_id: str
    email: Optional[str] = None
    is_power_user: bool = False


async def load_user_context(db: AsyncSession, user_id: str, email: Optional[str] = None) -> UserContext:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        logger.debug(f"[Profile] No profile row for {user_id}; using defaults")
        return UserContext(user_id=user_id, email=email)
    return UserContext(
        user_id=user_id,
        email=email or profile.email,
        is_power_user=bool(profile.is_power_user),
    )


async def get_prompt_override(db: AsyncSession, user_id: str) -> Optional[PromptOverride]:
    result = await db.execute(select(PromptOverride).where(PromptOverride.user_id == user_id))
    return result.scalar_one_or_none()


async def save_prompt_override(
    db: AsyncSession,
    user_id: str,
    prompt_task: Optional[str],
    prompt_guidelines: Optional[str],
    prompt_example: Optional[str],
) -> PromptOverride:
    """Persist the preview-and-save edits. Blank values clear the override."""
    override = await get_prompt_override(db, user_id)
    if override is None:
        override = PromptOverride(user_id=user_id)
        db.add(override)

    override.prompt_task = _blank_to_none(prompt_task)
    override.prompt_guidelines = _blank_to_none(prompt_guidelines)
    override.prompt_example = _blank_to_none(prompt_example)
    override.updated_at = utcnow()

    await db.commit()
    await db.refresh(override)
    logger.info(f"[Profile] Prompt override saved for {user_id}", extra={"user_id": user_id})
    return override


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value
