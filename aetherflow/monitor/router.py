from typing import Any

from fastapi import APIRouter

from aetherflow.core.dependencies import AdminUser, Metrics

router = APIRouter(prefix="/monitor", tags=["monitor"])


@router.get("/stats")
async def stats(admin: AdminUser, metrics: Metrics) -> dict[str, Any]:
    return metrics.snapshot()


@router.post("/reset")
async def reset(admin: AdminUser, metrics: Metrics) -> dict[str, str]:
    metrics.reset()
    return {"message": "Metrics reset"}
