"""
Long-polling loop that feeds updates to commands and forms.

Updates are handled one at a time, in the order the provider returns them,
on a single thread. An error in one update's handlers is logged and the loop
moves on, but the offset only advances past updates whose handlers succeeded,
so a failed update is fetched again unless a later one succeeds. An
UnauthorizedError while fetching updates means the token is no longer valid
and stops the loop.
"""

import logging
import time
from typing import Any, List

from telegram_bot_runtime.api.errors import (
    FileError,
    InvalidResponseError,
    MethodError,
    NetworkError,
    ParseError,
    RateLimitError,
    TelegramBotApiError,
    UnauthorizedError,
)
from telegram_bot_runtime.api.types import Update
from telegram_bot_runtime.commands import (
    CommandManager,
    create_registration_form,
    register_builtin_commands,
)
from telegram_bot_runtime.runtime_config import RuntimeConfig
from telegram_bot_runtime.services import Services, build_services

logger = logging.getLogger(__name__)

ALLOWED_UPDATES: List[str] = ["message"]


class Bot:
    """Polls for updates and routes each message to a command or a form."""

    def __init__(
        self, config: RuntimeConfig, services: Services, commands: CommandManager
    ) -> None:
        self.config = config
        self.services = services
        self.commands = commands
        self.offset = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def close(self) -> None:
        self.services.api.close()

    def run_forever(self) -> None:
        """Poll until stop() is called or the token is rejected."""
        self._running = True
        logger.info("Polling for updates (timeout %ss)", self.config.poll_timeout)
        try:
            while self._running:
                try:
                    self.poll_once()
                except TelegramBotApiError as e:
                    match e:
                        case UnauthorizedError():
                            logger.error("Bot token rejected: %s", e)
                            raise
                        case _:
                            logger.warning(
                                "Fetching updates failed: %s; retrying in %.1fs",
                                e,
                                self.config.error_backoff,
                            )
                            time.sleep(self.config.error_backoff)
        finally:
            self._running = False
            logger.info("Polling stopped at offset %s", self.offset)

    def poll_once(self) -> int:
        """Fetch and process one batch of updates; returns the batch size."""
        updates = self.services.api.get_updates(
            offset=self.offset + 1,
            timeout=self.config.poll_timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        for update in updates:
            if not self.process_update(update):
                continue
            update_id = update.get("update_id")
            if isinstance(update_id, int) and update_id > self.offset:
                self.offset = update_id
        self.services.forms.prune_expired()
        return len(updates)

    def process_update(self, update: Update) -> bool:
        """
        Handle one update, logging (not raising) any handler failure.

        Returns True when the handlers finished without error.
        """
        try:
            self.handle_update(update)
        except TelegramBotApiError as e:
            self._log_update_error(update, e)
            return False
        except Exception:
            logger.exception("Update %s: handler crashed", update.get("update_id"))
            return False
        return True

    def handle_update(self, update: Update) -> None:
        message = update.get("message")
        if not message:
            return
        sender = message.get("from")
        chat = message.get("chat")
        text = message.get("text")
        if not sender or not chat or not text:
            return

        chat_id = chat["id"]
        user_id = sender["id"]
        logger.info("Received message from user %s: %s", user_id, text)

        if self.commands.is_command(text):
            self.commands.handle(text, chat_id, user_id)
            return

        consumed = self.services.forms.process_input(chat_id, text, self.services.api)
        if not consumed and self.config.fallback_reply:
            reply: Any = {"message_id": message["message_id"]}
            self.services.api.send_message(
                chat_id, self.config.fallback_reply, reply_parameters=reply
            )

    def _log_update_error(self, update: Update, error: TelegramBotApiError) -> None:
        update_id = update.get("update_id")
        match error:
            case UnauthorizedError():
                # 403 also covers users who blocked the bot; a revoked token
                # surfaces on the next getUpdates
                logger.warning("Update %s: call refused: %s", update_id, error)
            case RateLimitError(retry_after=retry_after):
                logger.warning(
                    "Update %s: still rate limited after retries (retry_after=%s)",
                    update_id,
                    retry_after,
                )
            case MethodError(method=method):
                logger.warning("Update %s: %s rejected: %s", update_id, method, error)
            case NetworkError() | InvalidResponseError():
                logger.warning("Update %s: provider unreachable: %s", update_id, error)
            case FileError() | ParseError():
                logger.error("Update %s: could not encode request: %s", update_id, error)
            case _:
                logger.error("Update %s: %s", update_id, error)


def create_bot(config: RuntimeConfig) -> Bot:
    """Build services, register built-in commands and forms, and return the bot."""
    services = build_services(config)
    commands = CommandManager(services, prefix=config.command_prefix)
    register_builtin_commands(commands)
    services.forms.register_form(create_registration_form())
    return Bot(config, services, commands)
