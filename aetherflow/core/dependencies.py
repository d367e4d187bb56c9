import uuid
from typing import Annotated, AsyncIterator

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.auth.models import User
from aetherflow.core.exceptions import ForbiddenError
from aetherflow.core.security import decode_access_token
from aetherflow.db.session import async_session_factory
from aetherflow.monitor.metrics import MetricsSink

security_scheme = HTTPBearer()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        yield session


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared outbound client created in the app lifespan."""
    return request.app.state.http_client


def get_metrics(request: Request) -> MetricsSink:
    return request.app.state.metrics


DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
Metrics = Annotated[MetricsSink, Depends(get_metrics)]


async def require_admin(user: CurrentUser) -> User:
    if user.role != "admin":
        raise ForbiddenError("Admin access required")
    return user


AdminUser = Annotated[User, Depends(require_admin)]
