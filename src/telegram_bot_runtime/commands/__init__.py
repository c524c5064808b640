__all__ = [
    "CommandHandler",
    "CommandManager",
    "create_registration_form",
    "register_builtin_commands",
]

from .builtin import create_registration_form, register_builtin_commands
from .manager import CommandHandler, CommandManager
