"""Activity log service. Append-only and best-effort: a failed write never
fails the operation being recorded."""
import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.activity.models import ActivityLog

logger = logging.getLogger(__name__)


async def record_activity(
    db: AsyncSession,
    user_id: uuid.UUID,
    action: str,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | str | None = None,
    details: dict[str, Any] | None = None,
) -> ActivityLog | None:
    """Append an activity entry inside a SAVEPOINT; returns None if it could not be written."""
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except (SQLAlchemyError, TypeError, ValueError):
        logger.warning(
            "Failed to record activity %s for user %s", action, user_id, exc_info=True
        )
        return None
    return entry


async def list_activities(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 50
) -> list[ActivityLog]:
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
