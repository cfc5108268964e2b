from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from ..credentials import resolve_api_key
from ..errors import ConfigurationError
from ..schemas import Api, ApiConfig, Message, Prompt


ANTHROPIC_MAX_TOKENS = 4096
MERGE_SEPARATOR = "\n\n"

OPENAI_FAMILY = frozenset(
    {Api.OLLAMA, Api.OPENAI, Api.AZURE_OPENAI, Api.MISTRAL, Api.GROQ, Api.CEREBRAS}
)
BEARER_AUTH = frozenset({Api.OPENAI, Api.MISTRAL, Api.GROQ, Api.CEREBRAS})


# -------------------------
# Request bodies
# -------------------------

class OpenAiRequest(BaseModel):
    model: str
    messages: List[Message]
    temperature: Optional[float] = None
    stream: bool = False

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class AnthropicRequest(BaseModel):
    model: str
    messages: List[Message]
    temperature: Optional[float] = None
    max_tokens: int = ANTHROPIC_MAX_TOKENS
    stream: bool = False

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


WireRequest = Union[OpenAiRequest, AnthropicRequest]


def _ensure_usable_api(api: Api) -> None:
    if api is Api.ANOTHER_API_FOR_TESTS:
        raise ConfigurationError("This api is not made for actual use.")


def merge_anthropic_messages(messages: List[Message]) -> List[Message]:
    """
    Relabel system messages as user ones, then fold consecutive messages with
    the same role into one so roles strictly alternate.
    """
    merged: List[Message] = []
    for message in messages:
        role = "user" if message.role == "system" else message.role
        if merged and merged[-1].role == role:
            last = merged[-1]
            merged[-1] = last.with_content(last.content + MERGE_SEPARATOR + message.content)
        else:
            merged.append(Message(role=role, content=message.content))
    return merged


def to_wire_request(prompt: Prompt) -> WireRequest:
    _ensure_usable_api(prompt.api)
    if not prompt.model:
        raise ConfigurationError(
            "model must be specified either in the api config or in the prompt config"
        )

    if prompt.api is Api.ANTHROPIC:
        return AnthropicRequest(
            model=prompt.model,
            messages=merge_anthropic_messages(prompt.messages),
            temperature=prompt.temperature,
            stream=bool(prompt.stream),
        )

    return OpenAiRequest(
        model=prompt.model,
        messages=list(prompt.messages),
        temperature=prompt.temperature,
        stream=bool(prompt.stream),
    )


# -------------------------
# Auth
# -------------------------

def auth_headers(
    api: Api,
    api_config: ApiConfig,
    resolve_key: Callable[[ApiConfig], str] = resolve_api_key,
) -> Dict[str, str]:
    _ensure_usable_api(api)

    if api in BEARER_AUTH:
        return {"Authorization": f"Bearer {resolve_key(api_config)}"}
    if api is Api.AZURE_OPENAI:
        return {"api-key": resolve_key(api_config)}
    if api is Api.ANTHROPIC:
        if not api_config.version:
            raise ConfigurationError(
                "version required for Anthropic, please add version key to your api config"
            )
        return {
            "x-api-key": resolve_key(api_config),
            "anthropic-version": api_config.version,
        }
    # ollama runs locally without auth
    return {}


__all__ = [
    "ANTHROPIC_MAX_TOKENS",
    "MERGE_SEPARATOR",
    "OPENAI_FAMILY",
    "OpenAiRequest",
    "AnthropicRequest",
    "WireRequest",
    "merge_anthropic_messages",
    "to_wire_request",
    "auth_headers",
]
