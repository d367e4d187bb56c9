"""Provider credential management: per-user API keys, AES-encrypted at rest."""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.activity.service import record_activity
from aetherflow.core.exceptions import (
    DuplicateCredentialError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from aetherflow.credentials.cipher import decrypt_secret, encrypt_secret
from aetherflow.credentials.models import Credential, Provider
from aetherflow.providers.verification import check_liveness, verify_before_save

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "is_active", "base_url", "model_name")
CUSTOM_ONLY_FIELDS = ("base_url", "model_name")


@dataclass(frozen=True)
class ResolvedSecret:
    """A decrypted key, alive only for the request that resolved it."""
    credential_id: uuid.UUID
    provider: Provider
    api_key: str = field(repr=False)
    base_url: str | None = None
    model_name: str | None = None


def _coerce_provider(provider: Provider | str) -> Provider:
    try:
        return Provider(provider)
    except ValueError:
        raise ValidationError(f"Unsupported provider: {provider}")


def _validate_base_url(base_url: str) -> None:
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL:
        raise ValidationError("base_url is not a valid URL")
    if url.scheme not in ("http", "https") or not url.host:
        raise ValidationError("base_url must be an absolute http(s) URL")


async def _get_owned_credential(
    db: AsyncSession, owner_id: uuid.UUID, credential_id: uuid.UUID
) -> Credential:
    result = await db.execute(select(Credential).where(Credential.id == credential_id))
    cred = result.scalar_one_or_none()
    if cred is None:
        raise NotFoundError("API key", str(credential_id))
    if cred.owner_id != owner_id:
        raise ForbiddenError("You do not have access to this API key")
    return cred


async def add_credential(
    db: AsyncSession,
    client: httpx.AsyncClient,
    owner_id: uuid.UUID,
    provider: Provider | str,
    secret: str,
    name: str | None = None,
    base_url: str | None = None,
    model_name: str | None = None,
) -> Credential:
    provider = _coerce_provider(provider)
    if not secret or not secret.strip():
        raise ValidationError("API key must not be empty")
    if provider is Provider.CUSTOM:
        if not (base_url and model_name):
            raise ValidationError("Custom providers require base_url and model_name")
        _validate_base_url(base_url)

    result = await db.execute(
        select(Credential.id).where(
            Credential.owner_id == owner_id, Credential.provider == provider
        )
    )
    if result.scalar_one_or_none() is not None:
        raise DuplicateCredentialError(provider.value)

    await verify_before_save(client, provider, secret)

    ciphertext, nonce = encrypt_secret(secret)
    is_custom = provider is Provider.CUSTOM
    cred = Credential(
        owner_id=owner_id,
        provider=provider,
        name=name,
        ciphertext=ciphertext,
        nonce=nonce,
        base_url=base_url if is_custom else None,
        model_name=model_name if is_custom else None,
        is_active=True,
    )
    db.add(cred)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent insert for the same provider
        await db.rollback()
        raise DuplicateCredentialError(provider.value)

    await record_activity(
        db,
        owner_id,
        "create_api_key",
        entity_type="api_key",
        entity_id=cred.id,
        details={"provider": provider.value, "name": name},
    )
    await db.commit()
    logger.info("User %s added %s API key %s", owner_id, provider.value, cred.id)
    return cred


async def list_credentials(
    db: AsyncSession, owner_id: uuid.UUID, provider: Provider | str | None = None
) -> list[Credential]:
    query = select(Credential).where(Credential.owner_id == owner_id)
    if provider is not None:
        query = query.where(Credential.provider == _coerce_provider(provider))
    result = await db.execute(query.order_by(Credential.created_at))
    return list(result.scalars().all())


async def verify_credential(
    db: AsyncSession,
    client: httpx.AsyncClient,
    owner_id: uuid.UUID,
    credential_id: uuid.UUID,
) -> bool:
    cred = await _get_owned_credential(db, owner_id, credential_id)
    secret = decrypt_secret(cred.ciphertext, cred.nonce)
    valid = await check_liveness(client, cred.provider, secret)
    logger.info("Verified %s API key %s: valid=%s", cred.provider.value, cred.id, valid)
    return valid


async def update_credential(
    db: AsyncSession,
    owner_id: uuid.UUID,
    credential_id: uuid.UUID,
    changes: dict[str, Any],
) -> Credential:
    """Apply a partial update. Keys absent from ``changes`` are left alone; the secret never changes here."""
    cred = await _get_owned_credential(db, owner_id, credential_id)
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    if cred.provider is not Provider.CUSTOM and any(
        changes.get(f) is not None for f in CUSTOM_ONLY_FIELDS
    ):
        raise ValidationError("base_url and model_name only apply to custom providers")
    if "is_active" in changes and changes["is_active"] is None:
        raise ValidationError("is_active must be true or false")
    if changes.get("base_url") is not None:
        _validate_base_url(changes["base_url"])

    for key, value in changes.items():
        setattr(cred, key, value)
    await db.flush()

    await record_activity(
        db,
        owner_id,
        "update_api_key",
        entity_type="api_key",
        entity_id=cred.id,
        details={"provider": cred.provider.value, "fields": sorted(changes)},
    )
    await db.commit()
    logger.info("User %s updated %s API key %s", owner_id, cred.provider.value, cred.id)
    return cred


async def rotate_secret(
    db: AsyncSession,
    client: httpx.AsyncClient,
    owner_id: uuid.UUID,
    credential_id: uuid.UUID,
    secret: str,
) -> Credential:
    """Replace the stored key with a new one, encrypted under a fresh nonce."""
    cred = await _get_owned_credential(db, owner_id, credential_id)
    if not secret or not secret.strip():
        raise ValidationError("API key must not be empty")
    await verify_before_save(client, cred.provider, secret)

    cred.ciphertext, cred.nonce = encrypt_secret(secret)
    cred.is_active = True
    await db.flush()

    await record_activity(
        db,
        owner_id,
        "rotate_api_key",
        entity_type="api_key",
        entity_id=cred.id,
        details={"provider": cred.provider.value},
    )
    await db.commit()
    logger.info("User %s rotated %s API key %s", owner_id, cred.provider.value, cred.id)
    return cred


async def delete_credential(
    db: AsyncSession, owner_id: uuid.UUID, credential_id: uuid.UUID
) -> None:
    cred = await _get_owned_credential(db, owner_id, credential_id)
    provider, name = cred.provider.value, cred.name
    await db.delete(cred)
    await db.flush()

    await record_activity(
        db,
        owner_id,
        "delete_api_key",
        entity_type="api_key",
        entity_id=credential_id,
        details={"provider": provider, "name": name},
    )
    await db.commit()
    logger.info("User %s deleted %s API key %s", owner_id, provider, credential_id)


async def resolve_secret(
    db: AsyncSession, owner_id: uuid.UUID, provider: Provider | str
) -> ResolvedSecret | None:
    """Decrypt the owner's active key for a provider, or None if there is none."""
    provider = _coerce_provider(provider)
    result = await db.execute(
        select(Credential).where(
            Credential.owner_id == owner_id,
            Credential.provider == provider,
            Credential.is_active == True,  # noqa: E712
        )
    )
    cred = result.scalar_one_or_none()
    if cred is None:
        return None
    return ResolvedSecret(
        credential_id=cred.id,
        provider=provider,
        api_key=decrypt_secret(cred.ciphertext, cred.nonce),
        base_url=cred.base_url,
        model_name=cred.model_name,
    )
