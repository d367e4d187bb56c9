"""Provider registry.

Static, read-only table of the built-in providers. ``custom`` has no entry:
its spec is built per request from the user's stored base_url/model_name.
"""
from aetherflow.credentials.models import Provider
from aetherflow.providers.base import (
    ProviderSpec,
    bearer_headers,
    chat_completion_request,
    parse_chat_completion,
)


def _openai_compatible(name: str, endpoint: str, default_model: str) -> ProviderSpec:
    return ProviderSpec(
        name=name,
        endpoint=endpoint,
        default_model=default_model,
        build_request=chat_completion_request(default_model),
        build_headers=bearer_headers,
        parse_response=parse_chat_completion,
    )


PROVIDERS: dict[str, ProviderSpec] = {
    Provider.OPENAI.value: _openai_compatible(
        "openai", "https://api.openai.com/v1/chat/completions", "gpt-4"
    ),
    Provider.DEEPSEEK.value: _openai_compatible(
        "deepseek", "https://api.deepseek.com/v1/chat/completions", "deepseek-chat"
    ),
    Provider.MOONSHOT.value: _openai_compatible(
        "moonshot", "https://api.moonshot.cn/v1/chat/completions", "moonshot-v1-8k"
    ),
}

DEEPSEEK_MODELS_URL = "https://api.deepseek.com/v1/models"


def get_provider_spec(name: str) -> ProviderSpec:
    """Look up a built-in provider. Callers validate ``name`` first; unknown names raise KeyError."""
    return PROVIDERS[name]


def custom_provider_spec(base_url: str, model_name: str) -> ProviderSpec:
    endpoint = base_url.rstrip("/")
    if not endpoint.endswith("/chat/completions"):
        endpoint += "/chat/completions"
    return _openai_compatible(Provider.CUSTOM.value, endpoint, model_name)


def public_config() -> dict[str, dict[str, str]]:
    """Endpoint and default model per provider, safe to hand to clients."""
    return {
        name: {"api_url": spec.endpoint, "default_model": spec.default_model}
        for name, spec in PROVIDERS.items()
    }
