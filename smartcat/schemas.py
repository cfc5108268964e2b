from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


PLACEHOLDER_TOKEN = "#[<input>]"

DEFAULT_CHAR_LIMIT = 50000

CAT_SYSTEM_PROMPT = (
    "You are an extremely skilled programmer with a keen eye for detail and an emphasis on readable code. "
    "You have been tasked with acting as a smart version of the cat unix program. You take text and a prompt in and write text out. "
    "For that reason, it is of crucial importance to just write the desired output. Do not under any circumstance write any comment or thought "
    "as your output will be piped into other programs. Do not write the markdown delimiters for code as well. "
    "Sometimes you will be asked to implement or extend some input code. Same thing goes here, write only what was asked because what you write will "
    "be directly added to the user's editor. "
    "Never ever write ``` around the code. "
    "Make sure to keep the indentation and formatting. "
)


class Api(str, Enum):
    """Chat backends. Values are the lowercase names used in the config files."""

    ANOTHER_API_FOR_TESTS = "anotherapifortests"
    OLLAMA = "ollama"
    ANTHROPIC = "anthropic"
    GROQ = "groq"
    MISTRAL = "mistral"
    OPENAI = "openai"
    AZURE_OPENAI = "azureopenai"
    CEREBRAS = "cerebras"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Api"]:
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    def __str__(self) -> str:
        return self.value


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)

    def with_content(self, content: str) -> "Message":
        return Message(role=self.role, content=content)


class Prompt(BaseModel):
    """One chat session: a stored template or a saved conversation."""

    api: Api
    model: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    temperature: Optional[float] = None
    char_limit: Optional[int] = None
    stream: Optional[bool] = None  # unsupported, forced off before sending

    @classmethod
    def default(cls) -> "Prompt":
        return cls(
            api=Api.OLLAMA,
            messages=[Message.system(CAT_SYSTEM_PROMPT)],
            char_limit=DEFAULT_CHAR_LIMIT,
        )

    @classmethod
    def empty(cls) -> "Prompt":
        return cls(api=Api.OLLAMA, char_limit=DEFAULT_CHAR_LIMIT)

    def char_count(self) -> int:
        return sum(len(message.content) for message in self.messages)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


DEFAULT_TIMEOUT_SECONDS = 180


class ApiConfig(BaseModel):
    """Connection settings for one provider, as stored in the api config file."""

    api_key: Optional[str] = None
    url: str
    api_key_command: Optional[str] = None
    default_model: Optional[str] = None
    version: Optional[str] = None  # Anthropic only
    timeout_seconds: Optional[int] = DEFAULT_TIMEOUT_SECONDS

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key or self.api_key_command)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


__all__ = [
    "PLACEHOLDER_TOKEN",
    "DEFAULT_CHAR_LIMIT",
    "CAT_SYSTEM_PROMPT",
    "Api",
    "Message",
    "Prompt",
    "DEFAULT_TIMEOUT_SECONDS",
    "ApiConfig",
]
