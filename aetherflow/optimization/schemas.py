import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from aetherflow.credentials.models import Provider


class OptimizeRequest(BaseModel):
    content: str
    category: str = "general"
    provider: Provider = Provider.OPENAI
    model: str | None = None
    # camelCase spellings are accepted for older clients
    use_client_api: bool = Field(
        default=False, validation_alias=AliasChoices("use_client_api", "useClientApi")
    )
    history_id: uuid.UUID | None = Field(
        default=None, validation_alias=AliasChoices("history_id", "historyId")
    )
    api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("api_key", "apiKey")
    )


class OptimizeResponse(BaseModel):
    model_config = {"from_attributes": True}
    optimized_prompt: str
    improvements: str
    expected_benefits: str
    provider: str
    model: str
    history_id: uuid.UUID
    mock: bool


class IterationResponse(BaseModel):
    optimized_prompt: str
    improvements: str = ""
    expected_benefits: str = ""
    provider: str | None = None
    model: str | None = None
    timestamp: datetime


class OptimizationRecordResponse(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    original_prompt: str
    optimized_prompt: str
    improvements: str
    expected_benefits: str
    category: str
    provider: str
    model: str
    rating: int | None
    iterations: list[IterationResponse]
    created_at: datetime
    updated_at: datetime


class HistoryPageResponse(BaseModel):
    items: list[OptimizationRecordResponse]
    page: int
    limit: int
    total: int
    pages: int


class RateRequest(BaseModel):
    rating: int = Field(strict=True)


class RateResponse(BaseModel):
    id: uuid.UUID
    rating: int


class ClientConfigResponse(BaseModel):
    system_prompts: dict[str, str]
    providers: dict[str, dict[str, str]]
