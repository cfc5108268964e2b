from __future__ import annotations

import logging
import sys
from typing import Callable, Optional, Protocol, TextIO

from .config import is_interactive
from .errors import PromptTooLargeError, UserDeclined
from .llm_interaction import LLMAdapter
from .schemas import PLACEHOLDER_TOKEN, Api, ApiConfig, Prompt

logger = logging.getLogger(__name__)


class ConfigProvider(Protocol):
    def get_api_config(self, api: Api) -> ApiConfig: ...


def ask_user(question: str) -> str:
    print(question, file=sys.stderr)
    return sys.stdin.readline()


def insert_input(prompt: Prompt, raw_input: str) -> None:
    prompt.messages = [
        message.with_content(message.content.replace(PLACEHOLDER_TOKEN, raw_input))
        for message in prompt.messages
    ]


class Orchestrator:
    """
    Runs one request: input substitution, size check, provider call, output.
    The prompt it returns includes the assistant reply, ready to be saved.
    """

    def __init__(
        self,
        config: ConfigProvider,
        *,
        adapter_factory: Callable[[ApiConfig], LLMAdapter] = LLMAdapter,
        interactive: Optional[bool] = None,
        confirm: Callable[[str], str] = ask_user,
    ) -> None:
        self.config = config
        self.adapter_factory = adapter_factory
        self.interactive = is_interactive() if interactive is None else interactive
        self.confirm = confirm

    def run(
        self,
        prompt: Prompt,
        raw_input: str,
        output: TextIO,
        *,
        repeat_input: bool = False,
    ) -> Prompt:
        insert_input(prompt, raw_input)

        api_config = self.config.get_api_config(prompt.api)
        if prompt.model is None:
            prompt.model = api_config.default_model
        # streaming is not supported
        prompt.stream = False

        self.validate_prompt_size(prompt)

        adapter = self.adapter_factory(api_config)
        response_message = adapter.request_message(prompt)
        logger.debug("%s", response_message.content)

        prompt.messages.append(response_message)

        if repeat_input:
            output.write(raw_input + "\n")
        output.write(response_message.content)
        output.flush()

        return prompt

    def validate_prompt_size(self, prompt: Prompt) -> None:
        char_limit = prompt.char_limit or 0
        number_of_chars = prompt.char_count()
        logger.debug("Number of chars in prompt: %s", number_of_chars)

        if char_limit <= 0 or number_of_chars <= char_limit:
            return

        if not self.interactive:
            raise PromptTooLargeError(number_of_chars, char_limit)

        answer = self.confirm(
            f"The number of chars in the input {number_of_chars} is greater than the set limit {char_limit}\n"
            "Do you want to continue? High costs may ensue.\n[Y/n]"
        )
        if answer.strip() != "Y":
            raise UserDeclined("exiting...")


__all__ = ["ConfigProvider", "Orchestrator", "ask_user", "insert_input"]
