"""Live API key checks.

Only DeepSeek has one. Every other provider is reported valid without a
call; see DESIGN.md.
"""
import logging

import httpx

from aetherflow.core.exceptions import InvalidCredentialError, OptimizationError
from aetherflow.credentials.models import Provider
from aetherflow.providers.client import call_provider
from aetherflow.providers.registry import DEEPSEEK_MODELS_URL, get_provider_spec

logger = logging.getLogger(__name__)

LIVE_VERIFIED_PROVIDERS = frozenset({Provider.DEEPSEEK})


async def verify_before_save(client: httpx.AsyncClient, provider: Provider, api_key: str) -> None:
    """Run a one-token chat completion; raises InvalidCredentialError if the key is rejected."""
    if provider not in LIVE_VERIFIED_PROVIDERS:
        return
    spec = get_provider_spec(provider.value)
    try:
        await call_provider(
            client, spec, api_key, [{"role": "user", "content": "ping"}]
        )
    except OptimizationError as exc:
        raise InvalidCredentialError(provider.value, exc.message) from exc


async def check_liveness(client: httpx.AsyncClient, provider: Provider, api_key: str) -> bool:
    if provider not in LIVE_VERIFIED_PROVIDERS:
        return True
    spec = get_provider_spec(provider.value)
    try:
        response = await client.get(DEEPSEEK_MODELS_URL, headers=spec.build_headers(api_key))
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Liveness check for %s failed: %s", provider.value, type(exc).__name__)
        return False
    return response.is_success
