"""
Error kinds raised by the Bot API client.

Every failed call raises exactly one of the classes below. They share the
TelegramBotApiError base so callers can catch the whole family, and ApiError
names the closed set for exhaustive matching.
"""

from typing import Any, Mapping, Optional, Union


class TelegramBotApiError(Exception):
    """Base class for every error surfaced by the Bot API client."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(TelegramBotApiError):
    """Transport-level failure: connection refused, DNS, timeout."""


class InvalidResponseError(TelegramBotApiError):
    """The response body was not a well-formed Bot API envelope."""


class RateLimitError(TelegramBotApiError):
    """The provider throttled the call (HTTP 429)."""

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UnauthorizedError(TelegramBotApiError):
    """The bot token is invalid or has been revoked (401/403)."""


class MethodError(TelegramBotApiError):
    """The provider rejected a specific method call."""

    def __init__(
        self,
        message: str,
        method: str,
        parameters: Optional[Mapping[str, Any]] = None,
        error_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.parameters = dict(parameters) if parameters else None
        self.error_code = error_code

    @property
    def description(self) -> str:
        return self.message


class FileError(TelegramBotApiError):
    """A file attached to a request could not be read."""


class ParseError(TelegramBotApiError):
    """A request could not be serialized or a result had an unexpected shape."""


# Union type for all client errors
ApiError = Union[
    NetworkError,
    InvalidResponseError,
    RateLimitError,
    UnauthorizedError,
    MethodError,
    FileError,
    ParseError,
]


def is_retryable(error: TelegramBotApiError, retry_on_network_error: bool = False) -> bool:
    """Return whether the retry policy allows another attempt after ``error``."""
    match error:
        case RateLimitError():
            return True
        case NetworkError():
            return retry_on_network_error
        case _:
            return False
