"""Decide, once per request, whether an optimization goes to a real provider or the mock.

Secret priority: explicit client key, then the user's stored active
credential (unless the client asked to use its own key), then the platform
key from settings, then mock mode. Resolution never raises.
"""
import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.config import settings
from aetherflow.core.exceptions import DecryptionError
from aetherflow.credentials.models import Provider
from aetherflow.credentials.service import ResolvedSecret, resolve_secret
from aetherflow.providers.base import ProviderSpec
from aetherflow.providers.mock import mock_model_name
from aetherflow.providers.registry import custom_provider_spec, get_provider_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RealProviderCall:
    spec: ProviderSpec
    api_key: str = field(repr=False)
    model: str
    source: str  # "client", "stored" or "platform"


@dataclass(frozen=True)
class MockCall:
    provider: str
    model: str


CallStrategy = RealProviderCall | MockCall


async def _stored_secret(
    db: AsyncSession, owner_id: uuid.UUID, provider: Provider
) -> ResolvedSecret | None:
    try:
        return await resolve_secret(db, owner_id, provider)
    except DecryptionError:
        logger.warning(
            "Stored %s key for user %s could not be decrypted; ignoring it",
            provider.value,
            owner_id,
        )
        return None


async def resolve_strategy(
    db: AsyncSession,
    owner_id: uuid.UUID,
    provider: Provider,
    model: str | None = None,
    use_client_api: bool = False,
    client_api_key: str | None = None,
) -> CallStrategy:
    stored: ResolvedSecret | None = None
    # custom endpoints live on the stored credential, whoever supplies the key
    if provider is Provider.CUSTOM or (not use_client_api and not client_api_key):
        stored = await _stored_secret(db, owner_id, provider)

    api_key, source = None, None
    if client_api_key:
        api_key, source = client_api_key, "client"
    elif stored is not None and not use_client_api:
        api_key, source = stored.api_key, "stored"
    else:
        platform_key = settings.get_platform_secret(provider.value)
        if platform_key:
            api_key, source = platform_key, "platform"

    spec: ProviderSpec | None
    if provider is Provider.CUSTOM:
        if stored is not None and stored.base_url and stored.model_name:
            spec = custom_provider_spec(stored.base_url, stored.model_name)
        else:
            spec = None
    else:
        spec = get_provider_spec(provider.value)

    if api_key is None or spec is None:
        fallback_model = model or (spec.default_model if spec else provider.value)
        logger.warning(
            "No usable %s key for user %s; falling back to mock mode", provider.value, owner_id
        )
        return MockCall(provider=provider.value, model=mock_model_name(fallback_model))

    return RealProviderCall(
        spec=spec, api_key=api_key, model=spec.resolve_model(model), source=source
    )
