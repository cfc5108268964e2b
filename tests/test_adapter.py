# tests/test_adapter.py
# ============================================================
# pytest tests for LLMAdapter with a fake requests session
# ============================================================

from __future__ import annotations

import json

import pytest
import requests

from smartcat.errors import ApiResponseError, CredentialError, MalformedResponseError, TransportError
from smartcat.llm_interaction import LLMAdapter
from smartcat.schemas import Api, ApiConfig, Message, Prompt

OPENAI_REPLY = json.dumps({"choices": [{"message": {"role": "assistant", "content": "hi!"}}]})
ANTHROPIC_REPLY = json.dumps({"content": [{"type": "text", "text": "hello"}]})


def _prompt(api: Api = Api.OPENAI) -> Prompt:
    return Prompt(api=api, model="some-model", messages=[Message.user("say hi")], stream=False)


def test_posts_request_and_returns_assistant_message(make_session):
    session = make_session(200, OPENAI_REPLY)
    config = ApiConfig(url="https://api.example/v1/chat", api_key="k", timeout_seconds=30)

    message = LLMAdapter(config, session=session).request_message(_prompt())

    assert message == Message.assistant("hi!")
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://api.example/v1/chat"
    assert call["timeout"] == 30
    assert call["headers"] == {"Content-Type": "application/json", "Authorization": "Bearer k"}
    assert call["json"] == {
        "model": "some-model",
        "messages": [{"role": "user", "content": "say hi"}],
        "stream": False,
    }


def test_anthropic_call(make_session):
    session = make_session(200, ANTHROPIC_REPLY)
    config = ApiConfig(url="https://api.anthropic.com/v1/messages", api_key="k", version="2023-06-01")

    message = LLMAdapter(config, session=session).request_message(_prompt(Api.ANTHROPIC))

    assert message.content == "hello"
    call = session.calls[0]
    assert call["headers"]["x-api-key"] == "k"
    assert call["headers"]["anthropic-version"] == "2023-06-01"
    assert call["json"]["max_tokens"] == 4096


def test_default_timeout_is_used(make_session):
    session = make_session(200, OPENAI_REPLY)
    LLMAdapter(ApiConfig(url="https://x", api_key="k"), session=session).request_message(_prompt())
    assert session.calls[0]["timeout"] == 180


def test_non_2xx_is_an_api_error(make_session):
    session = make_session(401, '{"error": "invalid key"}')
    adapter = LLMAdapter(ApiConfig(url="https://x", api_key="bad"), session=session)

    with pytest.raises(ApiResponseError) as excinfo:
        adapter.request_message(_prompt())

    assert excinfo.value.status_code == 401
    assert "invalid key" in excinfo.value.body
    assert "status 401" in str(excinfo.value)


def test_connection_failure_is_a_transport_error(make_session):
    session = make_session(exc=requests.ConnectionError("refused"))
    adapter = LLMAdapter(ApiConfig(url="https://x", api_key="k"), session=session)

    with pytest.raises(TransportError, match="refused"):
        adapter.request_message(_prompt())


def test_timeout_is_a_transport_error(make_session):
    session = make_session(exc=requests.Timeout("too slow"))
    adapter = LLMAdapter(ApiConfig(url="https://x", api_key="k"), session=session)

    with pytest.raises(TransportError):
        adapter.request_message(_prompt())


def test_malformed_success_body(make_session):
    session = make_session(200, '{"choices": []}')
    adapter = LLMAdapter(ApiConfig(url="https://x", api_key="k"), session=session)

    with pytest.raises(MalformedResponseError):
        adapter.request_message(_prompt())


def test_missing_credential_fails_before_sending(make_session):
    session = make_session(200, OPENAI_REPLY)
    adapter = LLMAdapter(ApiConfig(url="https://x"), session=session)

    with pytest.raises(CredentialError):
        adapter.request_message(_prompt())
    assert session.calls == []


def test_custom_key_resolver(make_session):
    session = make_session(200, OPENAI_REPLY)
    adapter = LLMAdapter(
        ApiConfig(url="https://x", api_key_command="pass show openai"),
        session=session,
        resolve_key=lambda _config: "resolved",
    )
    adapter.request_message(_prompt())
    assert session.calls[0]["headers"]["Authorization"] == "Bearer resolved"
