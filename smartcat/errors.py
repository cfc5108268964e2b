from __future__ import annotations


class SmartcatError(RuntimeError):
    """Base class for every failure surfaced to the command line."""


class ConfigurationError(SmartcatError):
    """Raised when the configuration cannot produce a valid request."""


class CredentialError(ConfigurationError):
    """Raised when no API key can be resolved for a provider."""


class PromptTooLargeError(ConfigurationError):
    def __init__(self, number_of_chars: int, char_limit: int) -> None:
        super().__init__(
            f"Input {number_of_chars} larger than limit {char_limit} in non-interactive mode. Exiting."
        )
        self.number_of_chars = number_of_chars
        self.char_limit = char_limit


class TransportError(SmartcatError):
    """Raised when the HTTP call itself fails (timeout, refused connection, TLS)."""


class ApiResponseError(SmartcatError):
    """Raised when the provider answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class MalformedResponseError(SmartcatError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, message: str, body: bytes | str = b"") -> None:
        super().__init__(message)
        self.body = body


class UserDeclined(SmartcatError):
    """The user refused to send an oversized prompt. Not a failure."""


__all__ = [
    "SmartcatError",
    "ConfigurationError",
    "CredentialError",
    "PromptTooLargeError",
    "TransportError",
    "ApiResponseError",
    "MalformedResponseError",
    "UserDeclined",
]
