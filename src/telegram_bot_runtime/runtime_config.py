"""
Runtime configuration for the Telegram bot runtime.

This module provides:
- load_envs(): load TELEGRAM_BOT_TOKEN, TELEGRAM_API_BASE_URL, TELEGRAM_FALLBACK_REPLY
  and TELEGRAM_LOG_LEVEL from a .env file if they are not already present in the environment.
- RuntimeConfig: a dataclass holding runtime settings, including the bot token, base URL,
  retry policy, polling cadence and session bounds.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, find_dotenv

# Environment variable names for credentials and endpoints
TELEGRAM_BOT_TOKEN_ENV: str = "TELEGRAM_BOT_TOKEN"
TELEGRAM_API_BASE_URL_ENV: str = "TELEGRAM_API_BASE_URL"
TELEGRAM_FALLBACK_REPLY_ENV: str = "TELEGRAM_FALLBACK_REPLY"
TELEGRAM_LOG_LEVEL_ENV: str = "TELEGRAM_LOG_LEVEL"

DEFAULT_BASE_URL: str = "https://api.telegram.org"


def load_envs(env_file: Optional[str] = None) -> None:
    """
    Load the bot token, API base URL, fallback reply and log level from a .env file
    into the process environment if they are not already set.
    """
    env_values = dotenv_values(env_file or find_dotenv(usecwd=True))
    for key in (
        TELEGRAM_BOT_TOKEN_ENV,
        TELEGRAM_API_BASE_URL_ENV,
        TELEGRAM_FALLBACK_REPLY_ENV,
        TELEGRAM_LOG_LEVEL_ENV,
    ):
        if not os.environ.get(key):
            val = env_values.get(key)
            if val:
                os.environ[key] = str(val)


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Holds runtime configuration for the bot.

    Attributes:
        bot_token: The secret token issued by BotFather.
        base_url: Base URL of the Bot API server (without the /bot<token> suffix).
        max_attempts: Total attempts per RPC call when the provider rate limits us.
        retry_backoff: Seconds to wait between attempts when no retry_after is given.
        retry_on_network_error: Also retry transport failures (off by default, fail fast).
        request_timeout: Transport timeout in seconds for a single RPC call.
        poll_timeout: Long-poll timeout in seconds passed to getUpdates.
        error_backoff: Seconds to wait after a failed getUpdates before polling again.
        command_prefix: Character that marks a message as a command.
        history_max_depth: Maximum number of history entries kept per user.
        form_session_ttl: Seconds an idle form session survives before it is dropped.
        fallback_reply: Optional reply for plain text that no form session consumed.
        log_level: Name of the logging level for console output.
    """

    bot_token: str
    base_url: str = DEFAULT_BASE_URL
    max_attempts: int = 3
    retry_backoff: float = 1.0
    retry_on_network_error: bool = False
    request_timeout: float = 30.0
    poll_timeout: int = 30
    error_backoff: float = 5.0
    command_prefix: str = "/"
    history_max_depth: int = 50
    form_session_ttl: float = 3600.0
    fallback_reply: Optional[str] = None
    log_level: str = "INFO"

    @property
    def api_url(self) -> str:
        """Endpoint prefix every method name is appended to."""
        return f"{self.base_url.rstrip('/')}/bot{self.bot_token}"


def get_data_dir() -> Path:
    """
    Return the bot data directory under XDG_DATA_HOME or fallback to ~/.local/share.
    """
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return data_home / "telegram_bot_runtime"
