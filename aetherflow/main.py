import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aetherflow.activity.router import router as activity_router
from aetherflow.auth.router import router as auth_router
from aetherflow.config import settings
from aetherflow.core.exceptions import AppError
from aetherflow.core.logging import configure_logging
from aetherflow.credentials.router import router as credentials_router
from aetherflow.db.session import engine
from aetherflow.monitor.metrics import InMemoryMetrics
from aetherflow.monitor.middleware import MetricsMiddleware
from aetherflow.monitor.router import router as monitor_router
from aetherflow.optimization.router import router as optimization_router

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Fails startup in production when ENCRYPTION_KEY is missing or malformed
    settings.get_encryption_key()
    app.state.http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    logger.info("AetherFlow API started (environment=%s)", settings.environment)
    yield
    await app.state.http_client.aclose()
    await engine.dispose()


app = FastAPI(
    title="AetherFlow API",
    version="1.0.0",
    description="Prompt optimization with per-user, encrypted LLM provider API keys.",
    lifespan=lifespan,
)
app.state.metrics = InMemoryMetrics()

app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Submitted values are not echoed back
    errors = [
        {k: v for k, v in error.items() if k not in ("input", "ctx")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(errors), "code": "VALIDATION_ERROR"},
    )


app.include_router(auth_router)
app.include_router(credentials_router)
app.include_router(optimization_router)
app.include_router(activity_router)
app.include_router(monitor_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "1.0.0"}
