import logging
from typing import Callable, Dict, List, Optional

from telegram_bot_runtime.services import Services

logger = logging.getLogger(__name__)

# (chat_id, user_id, message_text, args, services)
CommandHandler = Callable[[int, int, str, List[str], Services], None]


class CommandManager:
    """Registry of slash commands and the dispatcher that runs them."""

    def __init__(self, services: Services, prefix: Optional[str] = None) -> None:
        if prefix is None:
            prefix = services.command_prefix
        if not prefix:
            raise ValueError("Command prefix must not be empty")
        self.services = services
        self.prefix = prefix
        # Handlers and forms name commands in their replies
        services.command_prefix = prefix
        services.forms.command_prefix = prefix
        self._commands: Dict[str, CommandHandler] = {}

    def register(self, command: str, handler: CommandHandler) -> None:
        self._commands[command.lower()] = handler

    def commands(self) -> Dict[str, CommandHandler]:
        return dict(self._commands)

    def is_command(self, text: str) -> bool:
        return text.startswith(self.prefix)

    def parse(self, text: str) -> tuple[str, List[str]]:
        """Split command text into the lowercased command name and its arguments."""
        parts = text.strip().split()
        command = parts[0][len(self.prefix) :] if parts else ""
        # /cmd@BotName addresses a specific bot in group chats
        command = command.split("@", 1)[0].lower()
        return command, parts[1:]

    def handle(self, message_text: str, chat_id: int, user_id: int) -> None:
        """
        Run the handler for a command message.

        Text without the prefix is ignored. Unknown commands get a pointer to
        the help command. Handler errors propagate to the caller.
        """
        if not self.is_command(message_text):
            return
        command, args = self.parse(message_text)
        handler = self._commands.get(command)
        if handler is None:
            logger.info(
                "Unknown command %s%s from user %s", self.prefix, command, user_id
            )
            self.services.api.send_message(
                chat_id,
                f"Unknown command: {self.prefix}{command}. "
                f"Use {self.prefix}help to see available commands.",
            )
            return
        logger.info(
            "Running %s%s for user %s in chat %s", self.prefix, command, user_id, chat_id
        )
        handler(chat_id, user_id, message_text, args, self.services)
