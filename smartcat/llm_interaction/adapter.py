from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import requests

from ..credentials import resolve_api_key
from ..errors import ApiResponseError, TransportError
from ..schemas import ApiConfig, Message, Prompt
from .responses import from_wire_response
from .wire import auth_headers, to_wire_request

logger = logging.getLogger(__name__)


class LLMAdapter:
    """
    Thin gateway around the chat APIs.
    Sends one request per call and normalizes the answer. Never retries.
    """

    def __init__(
        self,
        api_config: ApiConfig,
        *,
        session: Optional[requests.Session] = None,
        resolve_key: Callable[[ApiConfig], str] = resolve_api_key,
    ) -> None:
        self.api_config = api_config
        self.session = session or requests.Session()
        self.resolve_key = resolve_key

    # -------------------------------------------------

    def request_message(self, prompt: Prompt) -> Message:
        wire_request = to_wire_request(prompt)
        headers = self._headers(prompt)
        url = self.api_config.url

        logger.debug("Trying to reach %s with model %s", url, wire_request.model)

        try:
            response = self.session.post(
                url,
                json=wire_request.to_json(),
                headers=headers,
                timeout=self.api_config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Failed to make API request to {url}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ApiResponseError(response.status_code, response.text)

        message = from_wire_response(prompt.api, response.content)
        logger.debug("received %s chars", len(message.content))
        return message

    def _headers(self, prompt: Prompt) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(auth_headers(prompt.api, self.api_config, self.resolve_key))
        return headers


__all__ = ["LLMAdapter"]
