from __future__ import annotations

from typing import List, Type, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigurationError, MalformedResponseError
from ..schemas import Api, Message
from .wire import OPENAI_FAMILY


# -------------------------
# OpenAI family
# -------------------------

class MessageWrapper(BaseModel):
    message: Message


class OpenAiResponse(BaseModel):
    choices: List[MessageWrapper]

    def text(self) -> str:
        if not self.choices:
            raise IndexError("response has no choices")
        return self.choices[0].message.content


# -------------------------
# Anthropic
# -------------------------

class AnthropicContent(BaseModel):
    text: str
    type_: str = Field(alias="type")


class AnthropicResponse(BaseModel):
    content: List[AnthropicContent]

    def text(self) -> str:
        if not self.content:
            raise IndexError("response has no content")
        return self.content[0].text


# -------------------------
# Ollama
# -------------------------

class OllamaResponse(BaseModel):
    message: Message

    def text(self) -> str:
        return self.message.content


WireResponse = Union[OpenAiResponse, AnthropicResponse, OllamaResponse]


def response_model_for(api: Api) -> Type[WireResponse]:
    if api is Api.OLLAMA:
        return OllamaResponse
    if api is Api.ANTHROPIC:
        return AnthropicResponse
    if api in OPENAI_FAMILY:
        return OpenAiResponse
    raise ConfigurationError("This api is not made for actual use.")


def from_wire_response(api: Api, body: Union[bytes, str]) -> Message:
    """Parse a provider response body into the assistant message it carries."""
    model = response_model_for(api)
    try:
        parsed = model.model_validate_json(body)
        text = parsed.text()
    except ValidationError as exc:
        raise MalformedResponseError(f"Unexpected {api} response body: {exc}", body) from exc
    except IndexError as exc:
        raise MalformedResponseError(f"Empty {api} response: {exc}", body) from exc
    return Message.assistant(text)


__all__ = [
    "OpenAiResponse",
    "AnthropicResponse",
    "OllamaResponse",
    "response_model_for",
    "from_wire_response",
]
