import uuid

from fastapi import APIRouter

from aetherflow.core.dependencies import CurrentUser, DbSession, HttpClient
from aetherflow.credentials import service as cred_service
from aetherflow.credentials.models import Provider
from aetherflow.credentials.schemas import (
    CredentialCreate,
    CredentialResponse,
    CredentialUpdate,
    MessageResponse,
    SecretRotate,
    VerifyResponse,
)

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


@router.post("", response_model=CredentialResponse, status_code=201)
async def add_credential(body: CredentialCreate, user: CurrentUser, db: DbSession, client: HttpClient):
    return await cred_service.add_credential(
        db,
        client,
        owner_id=user.id,
        provider=body.provider,
        secret=body.key,
        name=body.name,
        base_url=body.base_url,
        model_name=body.model_name,
    )


@router.get("", response_model=list[CredentialResponse])
async def list_credentials(user: CurrentUser, db: DbSession, provider: Provider | None = None):
    return await cred_service.list_credentials(db, user.id, provider)


@router.post("/{credential_id}/verify", response_model=VerifyResponse)
async def verify_credential(credential_id: uuid.UUID, user: CurrentUser, db: DbSession, client: HttpClient):
    valid = await cred_service.verify_credential(db, client, user.id, credential_id)
    return VerifyResponse(valid=valid)


@router.patch("/{credential_id}", response_model=CredentialResponse)
async def update_credential(credential_id: uuid.UUID, body: CredentialUpdate, user: CurrentUser, db: DbSession):
    return await cred_service.update_credential(
        db, user.id, credential_id, body.model_dump(exclude_unset=True)
    )


@router.put("/{credential_id}/secret", response_model=CredentialResponse)
async def rotate_secret(
    credential_id: uuid.UUID, body: SecretRotate, user: CurrentUser, db: DbSession, client: HttpClient
):
    return await cred_service.rotate_secret(db, client, user.id, credential_id, body.key)


@router.delete("/{credential_id}", response_model=MessageResponse)
async def delete_credential(credential_id: uuid.UUID, user: CurrentUser, db: DbSession):
    await cred_service.delete_credential(db, user.id, credential_id)
    return MessageResponse(message="API key deleted")
