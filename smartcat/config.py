from __future__ import annotations

import logging
import os
import re
import shutil
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO
from urllib.parse import urlsplit

import ollama
import tomli_w
from pydantic import ValidationError

from .errors import ConfigurationError
from .schemas import Api, ApiConfig, Prompt

logger = logging.getLogger(__name__)

CUSTOM_CONFIG_ENV_VAR = "SMARTCAT_CONFIG_PATH"
IS_NONINTERACTIVE_ENV_VAR = "SMARTCAT_NONINTERACTIVE"
DEFAULT_CONFIG_PATH = Path(".config") / "smartcat"

PROMPT_FILE = "prompts.toml"
API_KEYS_FILE = ".api_configs.toml"
CONVERSATIONS_DIR = "conversations"
DEFAULT_PROMPT_NAME = "default"
DEFAULT_CONVERSATION_NAME = "last_conversation"

CONFIG_DOC_URL = "https://github.com/efugier/smartcat#configuration"
OLLAMA_DOC_URL = "https://github.com/efugier/smartcat#ollama-setup"

PROMPTS_FILE_HEADER = (
    "# Prompt config files\n"
    f"# more details and examples at {CONFIG_DOC_URL}\n\n"
)
API_KEYS_FILE_HEADER = (
    "# Api config files, use `api_key` or `api_key_command` fields\n"
    "# to set the api key for each api\n"
    f"# more details at {CONFIG_DOC_URL}\n\n"
)

_CONVERSATION_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


# -------------------------
# Environment
# -------------------------

def resolve_config_path() -> Path:
    custom_path = os.getenv(CUSTOM_CONFIG_ENV_VAR)
    if custom_path:
        return Path(custom_path)
    try:
        return Path.home() / DEFAULT_CONFIG_PATH
    except RuntimeError as exc:
        raise ConfigurationError(
            f"Could not determine default config path. Set either ${CUSTOM_CONFIG_ENV_VAR} or $HOME"
        ) from exc


def is_interactive() -> bool:
    return os.getenv(IS_NONINTERACTIVE_ENV_VAR, "") != "1"


def valid_conversation_name(name: str) -> str:
    if not _CONVERSATION_NAME.match(name):
        raise ValueError(
            f"Invalid conversation name {name!r}: use only letters, digits, '-' and '_'"
        )
    return name


# -------------------------
# Defaults
# -------------------------

def default_api_configs() -> Dict[str, ApiConfig]:
    return {
        Api.OLLAMA.value: ApiConfig(
            url="http://localhost:11434/api/chat",
            default_model="phi3",
        ),
        Api.OPENAI.value: ApiConfig(
            url="https://api.openai.com/v1/chat/completions",
            default_model="gpt-4",
        ),
        Api.AZURE_OPENAI.value: ApiConfig(
            url=(
                "https://your-azure-endpoint.azure.com/openai/deployments/"
                "your-deployment-id/chat/completions?api-version=2024-06-01"
            ),
            default_model="gpt-4o",
        ),
        Api.MISTRAL.value: ApiConfig(
            url="https://api.mistral.ai/v1/chat/completions",
            default_model="mistral-medium",
        ),
        Api.GROQ.value: ApiConfig(
            url="https://api.groq.com/openai/v1/chat/completions",
            default_model="llama3-70b-8192",
        ),
        Api.ANTHROPIC.value: ApiConfig(
            url="https://api.anthropic.com/v1/messages",
            default_model="claude-3-opus-20240229",
            version="2023-06-01",
        ),
        Api.CEREBRAS.value: ApiConfig(
            url="https://api.cerebras.ai/v1/chat/completions",
            default_model="llama3.1-70b",
        ),
    }


def default_prompts() -> Dict[str, Prompt]:
    return {DEFAULT_PROMPT_NAME: Prompt.default(), "empty": Prompt.empty()}


# -------------------------
# TOML helpers
# -------------------------

def read_toml(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Could not read file {path}: {exc}") from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Could not parse {path}: {exc}") from exc


def atomic_write_toml(path: Path, data: Mapping[str, Any], header: str = "") -> None:
    """Write to a .tmp sibling then replace the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(header + tomli_w.dumps(data), encoding="utf-8")
    tmp.replace(path)


# -------------------------
# Ollama availability
# -------------------------

def ollama_host(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def ollama_reachable(api_config: Optional[ApiConfig], timeout: float = 2.0) -> bool:
    host = ollama_host(api_config.url) if api_config else None
    try:
        ollama.Client(host=host, timeout=timeout).list()
    except Exception as exc:
        logger.debug("Ollama not reachable at %s: %s", host, exc)
        return False
    return True


@dataclass(frozen=True)
class ConfigStatus:
    has_credential: bool
    ollama_installed: bool
    ollama_running: bool

    @property
    def usable(self) -> bool:
        return self.has_credential or self.ollama_installed or self.ollama_running


# -------------------------
# Store
# -------------------------

class ConfigStore:
    """Prompt templates, api configs and saved conversations, kept as TOML files."""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = Path(config_dir) if config_dir is not None else resolve_config_path()

    @property
    def prompts_path(self) -> Path:
        return self.config_dir / PROMPT_FILE

    @property
    def api_configs_path(self) -> Path:
        return self.config_dir / API_KEYS_FILE

    @property
    def conversations_path(self) -> Path:
        return self.config_dir / CONVERSATIONS_DIR

    def conversation_file(self, name: str) -> Path:
        return self.conversations_path / f"{valid_conversation_name(name)}.toml"

    # --- bootstrap -------------------------------------------------

    def ensure_config_files(self, announce: Optional[TextIO] = None) -> List[Path]:
        """Generate the missing config files. Returns the paths that were created."""
        created: List[Path] = []

        if not self.prompts_path.exists():
            if announce:
                print(f"Prompt config file not found at {self.prompts_path}, generating one.\n...", file=announce)
            atomic_write_toml(
                self.prompts_path,
                {name: prompt.to_json() for name, prompt in default_prompts().items()},
                PROMPTS_FILE_HEADER,
            )
            created.append(self.prompts_path)

        if not self.api_configs_path.exists():
            if announce:
                print(f"API config file not found at {self.api_configs_path}, generating one.\n...", file=announce)
            atomic_write_toml(
                self.api_configs_path,
                {name: config.to_json() for name, config in default_api_configs().items()},
                API_KEYS_FILE_HEADER,
            )
            created.append(self.api_configs_path)

        for path in created:
            logger.info("generated %s", path)
        return created

    # --- templates -------------------------------------------------

    def get_prompts(self) -> Dict[str, Prompt]:
        raw = read_toml(self.prompts_path)
        try:
            return {name: Prompt.model_validate(value) for name, value in raw.items()}
        except ValidationError as exc:
            raise ConfigurationError(f"could not parse prompt file content: {exc}") from exc

    def get_prompt(self, name: str = DEFAULT_PROMPT_NAME) -> Prompt:
        prompts = self.get_prompts()
        if name not in prompts:
            raise ConfigurationError(
                f"`{name}` prompt not found, available ones are: {sorted(prompts)}"
            )
        return prompts[name]

    # --- api configs -----------------------------------------------

    def get_api_configs(self) -> Dict[str, ApiConfig]:
        raw = read_toml(self.api_configs_path)
        try:
            return {name: ApiConfig.model_validate(value) for name, value in raw.items()}
        except ValidationError as exc:
            raise ConfigurationError(f"could not parse api config file content: {exc}") from exc

    def get_api_config(self, api: Api) -> ApiConfig:
        configs = self.get_api_configs()
        key = str(api)
        if key not in configs:
            raise ConfigurationError(
                f"Api {key} not found, available ones are: {sorted(configs)}"
            )
        return configs[key]

    # --- conversations ---------------------------------------------

    def load_conversation(self, name: Optional[str] = None) -> Optional[Prompt]:
        path = self.conversation_file(name or DEFAULT_CONVERSATION_NAME)
        if not path.exists():
            return None
        try:
            return Prompt.model_validate(read_toml(path))
        except ValidationError as exc:
            raise ConfigurationError(f"failed to load the conversation file {path}: {exc}") from exc

    def save_conversation(self, prompt: Prompt, name: Optional[str] = None) -> Path:
        """Save under `name`; the last conversation is refreshed either way."""
        data = prompt.to_json()
        last = self.conversation_file(DEFAULT_CONVERSATION_NAME)
        atomic_write_toml(last, data)
        if name and name != DEFAULT_CONVERSATION_NAME:
            path = self.conversation_file(name)
            atomic_write_toml(path, data)
            return path
        return last

    # --- health ----------------------------------------------------

    def check_usable(self) -> ConfigStatus:
        configs = self.get_api_configs()
        has_credential = False
        for prompt in self.get_prompts().values():
            config = configs.get(str(prompt.api))
            if config is not None and config.has_credential:
                has_credential = True
                break
        return ConfigStatus(
            has_credential=has_credential,
            ollama_installed=shutil.which("ollama") is not None,
            ollama_running=ollama_reachable(configs.get(Api.OLLAMA.value)),
        )


def report_config_status(status: ConfigStatus, out: TextIO = sys.stderr) -> None:
    if not status.has_credential:
        print(
            "No API key is configured.\n"
            "How to configure your API keys:\n"
            f"{CONFIG_DOC_URL}\n",
            file=out,
        )
    if not (status.ollama_installed or status.ollama_running):
        print(
            "Ollama not found in PATH and no local Ollama server answered.\n"
            "How to setup Ollama:\n"
            f"{OLLAMA_DOC_URL}",
            file=out,
        )


__all__ = [
    "CUSTOM_CONFIG_ENV_VAR",
    "IS_NONINTERACTIVE_ENV_VAR",
    "DEFAULT_PROMPT_NAME",
    "DEFAULT_CONVERSATION_NAME",
    "resolve_config_path",
    "is_interactive",
    "valid_conversation_name",
    "default_api_configs",
    "default_prompts",
    "read_toml",
    "atomic_write_toml",
    "ollama_host",
    "ollama_reachable",
    "ConfigStatus",
    "ConfigStore",
    "report_config_status",
]
