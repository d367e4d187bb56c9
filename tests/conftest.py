"""
Test fixtures using async SQLite for fast, isolated tests.
No PostgreSQL and no real provider calls: outbound HTTP goes through
httpx.MockTransport.
"""
import os

# Must be set before aetherflow.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENCRYPTION_KEY"] = "0f" * 32
os.environ["ENVIRONMENT"] = "test"
for _name in ("OPENAI_API_KEY", "DEEPSEEK_API_KEY", "MOONSHOT_API_KEY"):
    os.environ[_name] = ""

import json  # noqa: E402
from typing import Any, Callable  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from aetherflow.db.base import Base  # noqa: E402
# All models must be imported so Base.metadata knows every table
from aetherflow.activity.models import ActivityLog  # noqa: E402,F401
from aetherflow.auth.models import User  # noqa: E402
from aetherflow.credentials.models import Credential  # noqa: E402,F401
from aetherflow.monitor.metrics import InMemoryMetrics  # noqa: E402
from aetherflow.optimization.models import OptimizationRecord  # noqa: E402,F401


@pytest_asyncio.fixture
async def db():
    """Create a fresh in-memory SQLite database for each test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    # Let SQLAlchemy, not the sqlite3 driver, own BEGIN so SAVEPOINTs work
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    await engine.dispose()


async def _make_user(db: AsyncSession, username: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        # bcrypt is slow and irrelevant here
        hashed_password="not-a-real-hash",
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> User:
    return await _make_user(db, "alice")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    return await _make_user(db, "mallory")


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


class ProviderStub:
    """Records outbound requests and answers them with a chat completion."""

    def __init__(self, content: str = "优化后的提示词：stub answer") -> None:
        self.content = content
        self.status_code = 200
        self.error: dict[str, Any] | None = None
        self.raise_exc: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json=self.error or {"error": {"message": "boom"}})
        if request.method == "GET":
            return httpx.Response(200, json={"object": "list", "data": [{"id": "deepseek-chat"}]})
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": self.content}}]},
        )

    def body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)


@pytest.fixture
def provider_stub() -> ProviderStub:
    return ProviderStub()


@pytest_asyncio.fixture
async def http_client(provider_stub: ProviderStub):
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider_stub.handler)) as client:
        yield client


@pytest.fixture
def override_app() -> Callable[..., None]:
    """Point the FastAPI app at the test session, user, client and metrics."""
    from aetherflow.core.dependencies import get_current_user, get_db, get_http_client, get_metrics
    from aetherflow.main import app

    def _apply(db: AsyncSession, user: User, client: httpx.AsyncClient, metrics: InMemoryMetrics) -> None:
        async def _get_db():
            yield db

        async def _get_user():
            return user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_user
        app.dependency_overrides[get_http_client] = lambda: client
        app.dependency_overrides[get_metrics] = lambda: metrics

    yield _apply
    app.dependency_overrides.clear()
