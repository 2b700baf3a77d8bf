import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aga.models.campaign import Campaign

logger = logging.getLogger(__name__)


async def campaign_name_exists(db: AsyncSession, name: str, user_id: str) -> bool:
    """
    True when *user_id* already owns a campaign called *name* (trimmed, case-sensitive).

    Blank names never exist. Query failures are logged and reported as
    "does not exist": the check fails open so a flaky store never blocks a
    submission.
    """
    candidate = (name or "").strip()
    if not candidate or not user_id:
        return False

    try:
        result = await db.execute(
            select(Campaign.id)
            .where(Campaign.name == candidate, Campaign.user_auth_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
    except SQLAlchemyError as exc:
        logger.error(
            f"[NameCheck] Error checking campaign name '{candidate}': {exc}",
            exc_info=True,
            extra={"user_id": user_id, "campaign_name": candidate},
        )
        await db.rollback()
        return False
