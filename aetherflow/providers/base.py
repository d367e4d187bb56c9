from dataclasses import dataclass
from typing import Any, Callable

Messages = list[dict[str, str]]


@dataclass(frozen=True)
class ProviderSpec:
    """How to call one chat-completion provider.

    Business logic never builds provider payloads itself; it goes through
    these four hooks.
    """
    name: str
    endpoint: str
    default_model: str
    build_request: Callable[[Messages, str | None], dict[str, Any]]
    build_headers: Callable[[str], dict[str, str]]
    parse_response: Callable[[dict[str, Any]], str]

    def resolve_model(self, model: str | None) -> str:
        return model or self.default_model


def bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }


def chat_completion_request(default_model: str) -> Callable[[Messages, str | None], dict[str, Any]]:
    def build(messages: Messages, model: str | None) -> dict[str, Any]:
        return {
            "model": model or default_model,
            "messages": messages,
            "temperature": 0.4,
            "max_tokens": 1500,
        }

    return build


def parse_chat_completion(data: dict[str, Any]) -> str:
    return data["choices"][0]["message"]["content"]
