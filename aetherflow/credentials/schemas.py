import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from aetherflow.credentials.models import Provider


class CredentialCreate(BaseModel):
    model_config = {"protected_namespaces": ()}
    provider: Provider
    key: str = Field(min_length=1)  # plaintext, encrypted before storage
    name: str | None = None
    base_url: str | None = Field(default=None, validation_alias=AliasChoices("base_url", "baseUrl"))
    model_name: str | None = Field(default=None, validation_alias=AliasChoices("model_name", "modelName"))


class CredentialUpdate(BaseModel):
    model_config = {"protected_namespaces": ()}
    name: str | None = None
    is_active: bool | None = Field(default=None, validation_alias=AliasChoices("is_active", "isActive"))
    base_url: str | None = Field(default=None, validation_alias=AliasChoices("base_url", "baseUrl"))
    model_name: str | None = Field(default=None, validation_alias=AliasChoices("model_name", "modelName"))


class SecretRotate(BaseModel):
    key: str = Field(min_length=1)


class CredentialResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}
    id: uuid.UUID
    owner_id: uuid.UUID
    provider: Provider
    name: str | None
    base_url: str | None
    model_name: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    # ciphertext and nonce are never exposed


class VerifyResponse(BaseModel):
    valid: bool


class MessageResponse(BaseModel):
    message: str
