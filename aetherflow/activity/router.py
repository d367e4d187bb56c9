from fastapi import APIRouter

from aetherflow.activity import service as activity_service
from aetherflow.activity.schemas import ActivityResponse
from aetherflow.core.dependencies import CurrentUser, DbSession

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=list[ActivityResponse])
async def list_activities(user: CurrentUser, db: DbSession, limit: int = 50):
    return await activity_service.list_activities(db, user.id, limit=min(max(limit, 1), 200))
