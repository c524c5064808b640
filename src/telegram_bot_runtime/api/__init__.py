"""
Client for the Telegram Bot API.
"""

__all__ = [
    "ApiError",
    "FileError",
    "InputFile",
    "InvalidResponseError",
    "MethodError",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "TelegramBotApi",
    "TelegramBotApiError",
    "UnauthorizedError",
]

from .client import TelegramBotApi
from .errors import (
    ApiError,
    FileError,
    InvalidResponseError,
    MethodError,
    NetworkError,
    ParseError,
    RateLimitError,
    TelegramBotApiError,
    UnauthorizedError,
)
from .types import InputFile
