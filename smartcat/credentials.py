from __future__ import annotations

import logging
import subprocess

from .errors import CredentialError
from .schemas import ApiConfig

logger = logging.getLogger(__name__)


def resolve_api_key(api_config: ApiConfig) -> str:
    """
    Return the API key for a provider.

    `api_key` wins when present. Otherwise `api_key_command` is run through the
    shell (stdin stays attached so password managers can prompt) and its
    trimmed stdout is the key.
    """
    if api_config.api_key:
        return api_config.api_key

    command = api_config.api_key_command
    if not command:
        raise CredentialError(
            f"No api_key or api_key_command configured for {api_config.url}"
        )

    logger.debug("Resolving api key with command for %s", api_config.url)
    try:
        completed = subprocess.run(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        raise CredentialError(
            f"api_key_command exited with status {exc.returncode}"
        ) from exc
    except OSError as exc:
        raise CredentialError(f"Failed to run the api_key_command: {exc}") from exc

    try:
        key = completed.stdout.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise CredentialError("Invalid UTF-8 from api_key_command") from exc

    if not key:
        raise CredentialError("api_key_command returned an empty key")
    return key


__all__ = ["resolve_api_key"]
