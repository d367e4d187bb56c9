"""Outbound provider calls over httpx. One request per call, no retries."""
import logging
from typing import Any

import httpx

from aetherflow.core.exceptions import OptimizationError
from aetherflow.providers.base import Messages, ProviderSpec

logger = logging.getLogger(__name__)


def _upstream_message(response: httpx.Response) -> str:
    """Pull the provider's own error text out of a non-2xx response."""
    try:
        data: Any = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"HTTP {response.status_code}: {error['message']}"
        if isinstance(error, str):
            return f"HTTP {response.status_code}: {error}"
        if data.get("message"):
            return f"HTTP {response.status_code}: {data['message']}"
    return f"HTTP {response.status_code}"


async def call_provider(
    client: httpx.AsyncClient,
    spec: ProviderSpec,
    api_key: str,
    messages: Messages,
    model: str | None = None,
) -> str:
    """POST a chat completion and return the assistant text."""
    try:
        response = await client.post(
            spec.endpoint,
            json=spec.build_request(messages, model),
            headers=spec.build_headers(api_key),
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Transport error calling %s: %s", spec.name, type(exc).__name__)
        raise OptimizationError(spec.name, f"{type(exc).__name__}: {exc}") from exc

    if response.is_error:
        message = _upstream_message(response)
        logger.warning("Provider %s returned an error: %s", spec.name, message)
        raise OptimizationError(spec.name, message)

    try:
        return spec.parse_response(response.json())
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise OptimizationError(spec.name, "unexpected response shape") from exc
