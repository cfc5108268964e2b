# tests/conftest.py
# ============================================================
# Shared pytest fixtures for all tests under tests/:
#   - config_dir / store: a throwaway config directory per test
#   - make_session: a fake requests session recording every POST
#   - fake_adapter: an LLMAdapter stand-in returning a canned reply
# ============================================================

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# ---------- Ensure project root is importable ----------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from smartcat.config import CUSTOM_CONFIG_ENV_VAR, IS_NONINTERACTIVE_ENV_VAR, ConfigStore
from smartcat.schemas import ApiConfig, Message, Prompt


# ---------- Config directory ----------
@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    """One config directory per test, never the real ~/.config/smartcat."""
    d = tmp_path / "smartcat_config"
    monkeypatch.setenv(CUSTOM_CONFIG_ENV_VAR, str(d))
    monkeypatch.setenv(IS_NONINTERACTIVE_ENV_VAR, "1")
    return d


@pytest.fixture
def store(config_dir: Path) -> ConfigStore:
    s = ConfigStore(config_dir)
    s.ensure_config_files()
    return s


# ---------- HTTP fakes ----------
class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes | str = b"") -> None:
        self.status_code = status_code
        self.content = body.encode("utf-8") if isinstance(body, str) else body

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, exc: Optional[Exception] = None) -> None:
        self.response = response
        self.exc = exc
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        assert self.response is not None
        return self.response


@pytest.fixture
def make_session():
    def _make(status_code: int = 200, body: bytes | str = b"", exc: Optional[Exception] = None) -> FakeSession:
        return FakeSession(FakeResponse(status_code, body), exc)
    return _make


# ---------- Adapter fake ----------
class FakeAdapter:
    """Callable like the LLMAdapter class; records what it was asked to send."""

    def __init__(self, reply: str = "meow") -> None:
        self.reply = reply
        self.api_configs: List[ApiConfig] = []
        self.prompts: List[Prompt] = []

    def __call__(self, api_config: ApiConfig) -> "FakeAdapter":
        self.api_configs.append(api_config)
        return self

    def request_message(self, prompt: Prompt) -> Message:
        self.prompts.append(prompt.model_copy(deep=True))
        return Message.assistant(self.reply)


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()
