from __future__ import annotations

import glob
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import ConfigurationError
from .schemas import PLACEHOLDER_TOKEN, Api, Message, Prompt

logger = logging.getLogger(__name__)

# a temperature of 0 does not lead to a deterministic result with current APIs
ZERO_TEMPERATURE = 1e-13

CONTEXT_HEADER = "files content for context:\n\n"


@dataclass
class ParamOverrides:
    """Runtime parameters layered on top of a stored prompt."""

    api: Optional[Api] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    char_limit: Optional[int] = None
    context: List[str] = field(default_factory=list)


# -------------------------
# Context files
# -------------------------

def _check_pattern(pattern: str) -> None:
    for component in re.split(r"[\\/]", pattern):
        if "**" in component and component != "**":
            raise ConfigurationError(
                f"Failed to read glob pattern {pattern!r}: `**` must form a whole path component"
            )

    idx = 0
    while True:
        start = pattern.find("[", idx)
        if start == -1:
            return
        # a `]` right after `[` or `[!` is part of the set
        body = start + 1
        if body < len(pattern) and pattern[body] == "!":
            body += 1
        close = pattern.find("]", body + 1)
        if close == -1:
            raise ConfigurationError(
                f"Failed to read glob pattern {pattern!r}: unclosed character class"
            )
        idx = close + 1


def _read_context_block(path: str) -> Optional[str]:
    try:
        # bytes kept as is, no newline translation
        content = Path(path).read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping context file %s: %s", path, exc)
        return None
    return f"{path}:\n```\n{content}\n```\n"


def collect_context(patterns: Iterable[str]) -> str:
    """Concatenate the content of every file matched by the glob patterns."""
    blocks: List[str] = []
    for pattern in patterns:
        _check_pattern(pattern)
        matches = glob.glob(pattern, recursive=True, include_hidden=True)
        # ordered one directory level at a time
        for path in sorted(matches, key=lambda p: Path(p).parts):
            block = _read_context_block(path)
            if block is not None:
                blocks.append(block)
    return "".join(blocks)


def _insert_before_first_user(messages: List[Message], message: Message) -> None:
    for index, existing in enumerate(messages):
        if existing.role == "user":
            messages.insert(index, message)
            return
    messages.append(message)


# -------------------------
# Customization
# -------------------------

def customize_prompt(
    prompt: Prompt,
    overrides: ParamOverrides,
    custom_prompt: Optional[str] = None,
) -> Prompt:
    """
    Layer overrides, context and the free-text command onto a prompt.

    Afterwards the last message is a user message and it holds the only
    placeholder of the whole prompt.
    """
    logger.debug("pre-customization prompt %s", prompt)
    prompt = prompt.model_copy(deep=True)

    if overrides.api is not None:
        prompt.api = overrides.api
    if overrides.model is not None:
        prompt.model = overrides.model
    if overrides.char_limit is not None:
        prompt.char_limit = overrides.char_limit
    if overrides.temperature is not None:
        prompt.temperature = ZERO_TEMPERATURE if overrides.temperature == 0 else overrides.temperature

    context = collect_context(overrides.context)
    if context:
        _insert_before_first_user(prompt.messages, Message.system(CONTEXT_HEADER + context))

    if custom_prompt is not None:
        command_text = custom_prompt
        if PLACEHOLDER_TOKEN not in command_text:
            command_text += PLACEHOLDER_TOKEN
        # keep a single placeholder across the whole prompt
        prompt.messages = [
            message.with_content(message.content.replace(PLACEHOLDER_TOKEN, ""))
            for message in prompt.messages
        ]
        prompt.messages.append(Message.user(command_text))

    if not prompt.messages or prompt.messages[-1].role != "user":
        last_message = Message.user(PLACEHOLDER_TOKEN)
    else:
        last_message = prompt.messages.pop()

    if PLACEHOLDER_TOKEN not in last_message.content:
        last_message = last_message.with_content(last_message.content + PLACEHOLDER_TOKEN)

    prompt.messages.append(last_message)

    logger.debug("post-customization prompt %s", prompt)
    return prompt


__all__ = [
    "ZERO_TEMPERATURE",
    "CONTEXT_HEADER",
    "ParamOverrides",
    "collect_context",
    "customize_prompt",
]
