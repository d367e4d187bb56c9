import uuid

from fastapi import APIRouter

from aetherflow.core.dependencies import CurrentUser, DbSession, HttpClient, Metrics
from aetherflow.optimization import service as optimization_service
from aetherflow.optimization.prompts import SYSTEM_PROMPTS
from aetherflow.optimization.schemas import (
    ClientConfigResponse,
    HistoryPageResponse,
    OptimizationRecordResponse,
    OptimizeRequest,
    OptimizeResponse,
    RateRequest,
    RateResponse,
)
from aetherflow.optimization.service import OptimizeCommand
from aetherflow.providers.registry import public_config

router = APIRouter(prefix="/prompts/optimize", tags=["optimization"])


@router.post("", response_model=OptimizeResponse)
async def optimize_prompt(
    body: OptimizeRequest, user: CurrentUser, db: DbSession, client: HttpClient, metrics: Metrics
):
    command = OptimizeCommand(**body.model_dump())
    result = await optimization_service.optimize(db, client, user.id, command, metrics)
    return OptimizeResponse.model_validate(result)


@router.get("/config", response_model=ClientConfigResponse)
async def client_config(user: CurrentUser) -> ClientConfigResponse:
    return ClientConfigResponse(system_prompts=SYSTEM_PROMPTS, providers=public_config())


@router.get("/history", response_model=HistoryPageResponse)
async def list_history(
    user: CurrentUser,
    db: DbSession,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    provider: str | None = None,
    search: str | None = None,
) -> HistoryPageResponse:
    history = await optimization_service.list_history(
        db, user.id, page=page, limit=limit, category=category, provider=provider, search=search
    )
    return HistoryPageResponse(
        items=[OptimizationRecordResponse.model_validate(r) for r in history.records],
        page=history.page,
        limit=history.limit,
        total=history.total,
        pages=history.pages,
    )


@router.get("/history/{history_id}", response_model=OptimizationRecordResponse)
async def get_history(history_id: uuid.UUID, user: CurrentUser, db: DbSession):
    return await optimization_service.get_history(db, user.id, history_id)


@router.post("/history/{history_id}/rate", response_model=RateResponse)
async def rate_optimization(history_id: uuid.UUID, body: RateRequest, user: CurrentUser, db: DbSession):
    record = await optimization_service.rate_optimization(db, user.id, history_id, body.rating)
    return RateResponse(id=record.id, rating=record.rating)
