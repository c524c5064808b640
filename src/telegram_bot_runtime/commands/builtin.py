"""
Built-in command handlers and the example registration form.
"""

import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from telegram_bot_runtime.api.types import InputFile, Message
from telegram_bot_runtime.commands.manager import CommandManager
from telegram_bot_runtime.forms import Form, create_form, create_form_step
from telegram_bot_runtime.history import HistoryEntry
from telegram_bot_runtime.services import Services

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 30.0


def register_builtin_commands(manager: CommandManager) -> None:
    """Register all built-in commands on the given manager."""

    def cmd_help(
        chat_id: int, user_id: int, text: str, args: List[str], services: Services
    ) -> None:
        """Show this help message"""
        lines = ["Available Commands:", ""]
        for name, handler in sorted(manager.commands().items()):
            doc = (handler.__doc__ or "No description available").strip()
            lines.append(f"{manager.prefix}{name} - {doc.splitlines()[0]}")
        services.api.send_message(chat_id, "\n".join(lines))

    manager.register("help", cmd_help)
    manager.register("start", cmd_start)
    manager.register("photo", cmd_photo)
    manager.register("historypush", cmd_history_push)
    manager.register("historyback", cmd_history_back)
    manager.register("historyclear", cmd_history_clear)
    manager.register("form", cmd_form)
    manager.register("formlist", cmd_form_list)
    manager.register("cancel", cmd_cancel)


def cmd_start(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """Start interacting with the bot"""
    services.api.send_message(
        chat_id,
        "Welcome! I'm your Telegram bot. "
        f"Use {services.command_prefix}help to see available commands.",
    )


def cmd_photo(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """<url|file_id> - Send a photo, uploading it once and reusing the handle"""
    if not args:
        services.api.send_message(
            chat_id, f"Usage: {services.command_prefix}photo <url|file_id>"
        )
        return
    source = args[0]

    cached = services.files.get(source)
    if cached is not None:
        logger.info("Sending cached photo %s", source)
        services.api.send_photo(chat_id, cached, caption=f"📸 {source}")
        return

    if not _is_url(source):
        # Treat the argument as a provider file handle
        message = services.api.send_photo(chat_id, source)
        _remember_photo(services, source, message)
        return

    upload = _download(source)
    if upload is None:
        services.api.send_message(chat_id, f"Could not download {source}")
        return
    message = services.api.send_photo(chat_id, upload, caption=f"📸 {upload.filename}")
    _remember_photo(services, source, message)


def cmd_history_push(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """<text> - Send a message and remember it for /historyback"""
    if not args:
        services.api.send_message(
            chat_id, f"Usage: {services.command_prefix}historypush <text>"
        )
        return
    payload: Dict[str, Any] = {"chat_id": chat_id, "text": " ".join(args)}
    services.api.send_message(**payload)
    services.history.push(user_id, HistoryEntry(method="sendMessage", data=payload))


def cmd_history_back(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """Repeat your last remembered message"""
    if services.history.depth(user_id) == 0:
        services.api.send_message(chat_id, "History is empty.")
        return
    services.history.back(user_id)


def cmd_history_clear(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """Forget your remembered messages"""
    services.history.delete(user_id)
    services.api.send_message(chat_id, "History cleared.")


def cmd_form(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """<name> - Start filling out a form"""
    if not args:
        services.api.send_message(
            chat_id,
            f"Usage: {services.command_prefix}form <name>\n\n" + _format_forms(services),
        )
        return
    services.forms.start_form(chat_id, args[0])


def cmd_form_list(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """List available forms"""
    services.api.send_message(chat_id, _format_forms(services))


def cmd_cancel(
    chat_id: int, user_id: int, text: str, args: List[str], services: Services
) -> None:
    """Cancel the form in progress"""
    if services.forms.cancel_form(chat_id):
        services.api.send_message(chat_id, "Form cancelled.")
    else:
        services.api.send_message(chat_id, "No form in progress.")


def create_registration_form() -> Form:
    """Example three-step form that echoes the answers back."""

    def on_complete(chat_id: int, results: Dict[str, str], api: Any) -> None:
        text = (
            "Registration complete!\n\n"
            f"Name: {results['name']}\n"
            f"Email: {results['email']}\n"
            f"Age: {results['age']}"
        )
        api.send_message(chat_id, text)

    return create_form(
        "registration",
        [
            create_form_step("What is your name?", "name"),
            create_form_step("What is your email address?", "email"),
            create_form_step("What is your age?", "age"),
        ],
        on_complete,
    )


def _format_forms(services: Services) -> str:
    names = services.forms.forms()
    if not names:
        return "No forms available."
    return "Available forms:\n" + "\n".join(f"- {name}" for name in names)


def _is_url(value: str) -> bool:
    return urlparse(value).scheme in ("http", "https")


def _download(url: str) -> Optional[InputFile]:
    try:
        response = requests.get(url, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Failed to download %s: %s", url, e)
        return None
    filename = os.path.basename(urlparse(url).path) or "photo.jpg"
    mime_type = response.headers.get("Content-Type", "image/jpeg").split(";")[0]
    return InputFile(content=response.content, filename=filename, mime_type=mime_type)


def _remember_photo(services: Services, source: str, message: Message) -> None:
    photos = message.get("photo") or []
    if photos:
        # Sizes are ordered smallest first
        services.files.save(source, photos[-1]["file_id"])
    services.messages.set(f"photo:{source}", message)
