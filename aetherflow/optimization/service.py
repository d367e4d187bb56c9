"""Prompt optimization gateway and optimization history."""
import logging
import math
import time
import uuid
from dataclasses import dataclass

import httpx
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.activity.service import record_activity
from aetherflow.core.exceptions import NotFoundError, OptimizationError, ValidationError
from aetherflow.credentials.models import Provider
from aetherflow.db.base import utcnow
from aetherflow.monitor.metrics import MetricsSink
from aetherflow.optimization.models import OptimizationRecord
from aetherflow.optimization.parsing import parse_optimization_output
from aetherflow.optimization.prompts import build_messages, normalize_category
from aetherflow.optimization.strategy import MockCall, resolve_strategy
from aetherflow.providers.client import call_provider
from aetherflow.providers.mock import mock_optimization

logger = logging.getLogger(__name__)

MIN_RATING, MAX_RATING = 1, 5


@dataclass(frozen=True)
class OptimizeCommand:
    content: str
    category: str | None = None
    provider: Provider = Provider.OPENAI
    model: str | None = None
    use_client_api: bool = False
    history_id: uuid.UUID | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class OptimizationResult:
    optimized_prompt: str
    improvements: str
    expected_benefits: str
    provider: str
    model: str
    history_id: uuid.UUID
    mock: bool


@dataclass(frozen=True)
class HistoryPage:
    records: list[OptimizationRecord]
    total: int
    page: int
    limit: int
    pages: int


async def _find_owned_record(
    db: AsyncSession, owner_id: uuid.UUID, history_id: uuid.UUID
) -> OptimizationRecord | None:
    result = await db.execute(
        select(OptimizationRecord).where(
            OptimizationRecord.id == history_id,
            OptimizationRecord.owner_id == owner_id,
        )
    )
    return result.scalar_one_or_none()


async def optimize(
    db: AsyncSession,
    client: httpx.AsyncClient,
    owner_id: uuid.UUID,
    command: OptimizeCommand,
    metrics: MetricsSink,
) -> OptimizationResult:
    content = command.content or ""
    if not content.strip():
        raise ValidationError("Prompt content must not be empty")
    category = normalize_category(command.category)
    try:
        provider = Provider(command.provider)
    except ValueError:
        raise ValidationError(f"Unsupported provider: {command.provider}")

    record = None
    if command.history_id is not None:
        record = await _find_owned_record(db, owner_id, command.history_id)
        if record is None:
            logger.info(
                "History %s not found for user %s; starting a new optimization",
                command.history_id,
                owner_id,
            )
    previous = record.optimized_prompt if record is not None else None

    strategy = await resolve_strategy(
        db,
        owner_id,
        provider,
        model=command.model,
        use_client_api=command.use_client_api,
        client_api_key=command.api_key,
    )
    is_mock = isinstance(strategy, MockCall)
    mode = "mock" if is_mock else strategy.source
    metrics.increment("optimization.requests", provider=provider.value, mode=mode)

    if is_mock:
        metrics.increment("optimization.mock", provider=provider.value)
        parsed = mock_optimization(content, category, previous)
    else:
        messages = build_messages(content, category, previous)
        started = time.monotonic()
        try:
            raw = await call_provider(client, strategy.spec, strategy.api_key, messages, strategy.model)
        except OptimizationError:
            metrics.increment("optimization.failures", provider=provider.value)
            raise
        finally:
            metrics.observe(
                "optimization.latency_ms",
                (time.monotonic() - started) * 1000,
                provider=provider.value,
            )
        parsed = parse_optimization_output(raw)

    optimized = parsed.optimized_prompt or content
    iteration = {
        "optimized_prompt": optimized,
        "improvements": parsed.improvements,
        "expected_benefits": parsed.expected_benefits,
        "provider": provider.value,
        "model": strategy.model,
        "timestamp": utcnow().isoformat(),
    }

    if record is not None:
        # Last write wins if two rounds race on the same record
        record.iterations = [*record.iterations, iteration]
        record.optimized_prompt = optimized
        record.improvements = parsed.improvements
        record.expected_benefits = parsed.expected_benefits
        record.provider = provider.value
        record.model = strategy.model
    else:
        record = OptimizationRecord(
            owner_id=owner_id,
            original_prompt=content,
            optimized_prompt=optimized,
            improvements=parsed.improvements,
            expected_benefits=parsed.expected_benefits,
            category=category,
            provider=provider.value,
            model=strategy.model,
            iterations=[iteration],
        )
        db.add(record)
    await db.flush()

    await record_activity(
        db,
        owner_id,
        "optimize",
        entity_type="optimization",
        entity_id=record.id,
        details={
            "content": content[:100],
            "provider": provider.value,
            "mock": is_mock,
            "round": len(record.iterations),
        },
    )
    await db.commit()
    logger.info(
        "Optimized prompt for user %s via %s/%s (mode=%s, round=%d)",
        owner_id,
        provider.value,
        strategy.model,
        mode,
        len(record.iterations),
    )

    return OptimizationResult(
        optimized_prompt=optimized,
        improvements=parsed.improvements,
        expected_benefits=parsed.expected_benefits,
        provider=provider.value,
        model=strategy.model,
        history_id=record.id,
        mock=is_mock,
    )


async def get_history(
    db: AsyncSession, owner_id: uuid.UUID, history_id: uuid.UUID
) -> OptimizationRecord:
    record = await _find_owned_record(db, owner_id, history_id)
    if record is None:
        raise NotFoundError("Optimization history", str(history_id))
    return record


async def list_history(
    db: AsyncSession,
    owner_id: uuid.UUID,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    provider: str | None = None,
    search: str | None = None,
) -> HistoryPage:
    """Newest first; limit is clamped to [1, 100]."""
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    query = select(OptimizationRecord).where(OptimizationRecord.owner_id == owner_id)
    if category:
        query = query.where(OptimizationRecord.category == category)
    if provider:
        query = query.where(OptimizationRecord.provider == provider)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                OptimizationRecord.original_prompt.ilike(pattern),
                OptimizationRecord.optimized_prompt.ilike(pattern),
            )
        )

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = int(total_result.scalar_one())

    result = await db.execute(
        query.order_by(OptimizationRecord.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return HistoryPage(
        records=list(result.scalars().all()),
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )


async def rate_optimization(
    db: AsyncSession, owner_id: uuid.UUID, history_id: uuid.UUID, rating: int
) -> OptimizationRecord:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
    record = await get_history(db, owner_id, history_id)
    record.rating = rating
    await db.flush()

    await record_activity(
        db,
        owner_id,
        "rate_optimization",
        entity_type="optimization",
        entity_id=record.id,
        details={"rating": rating},
    )
    await db.commit()
    return record
