"""
Long-polling Telegram bot runtime: slash commands, multi-step forms and
per-user history on top of a retrying Bot API client.
"""

__all__ = ["Bot", "RuntimeConfig", "create_bot"]

from .bot import Bot, create_bot
from .runtime_config import RuntimeConfig
