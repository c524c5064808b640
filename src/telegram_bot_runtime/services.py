from dataclasses import dataclass

from telegram_bot_runtime.api.client import TelegramBotApi
from telegram_bot_runtime.caches import InputFileCache, MessageCache
from telegram_bot_runtime.forms import FormManager
from telegram_bot_runtime.history import HistoryCache
from telegram_bot_runtime.runtime_config import RuntimeConfig


@dataclass
class Services:
    """Collaborators handed to every command handler."""

    api: TelegramBotApi
    history: HistoryCache
    forms: FormManager
    messages: MessageCache
    files: InputFileCache
    # Prefix that user-facing replies put in front of command names
    command_prefix: str = "/"


def build_services(config: RuntimeConfig) -> Services:
    """Construct the service graph once at startup."""
    api = TelegramBotApi(config)
    return Services(
        api=api,
        history=HistoryCache(api, max_depth=config.history_max_depth),
        forms=FormManager(
            api,
            session_ttl=config.form_session_ttl,
            command_prefix=config.command_prefix,
        ),
        messages=MessageCache(),
        files=InputFileCache(),
        command_prefix=config.command_prefix,
    )
