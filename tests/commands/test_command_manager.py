from typing import Any, List

import pytest
from conftest import FakeApi

from telegram_bot_runtime.commands import CommandManager
from telegram_bot_runtime.services import Services


class Recorder:
    def __init__(self) -> None:
        self.calls: List[tuple[int, int, str, List[str], Any]] = []

    def __call__(
        self, chat_id: int, user_id: int, text: str, args: List[str], services: Services
    ) -> None:
        self.calls.append((chat_id, user_id, text, args, services))


@pytest.fixture
def manager(services: Services) -> CommandManager:
    return CommandManager(services)


@pytest.mark.parametrize("text", ["/NAME arg1 arg2", "/Name arg1 arg2", "/name arg1 arg2"])
def test_commands_are_case_insensitive(manager: CommandManager, text: str) -> None:
    handler = Recorder()
    manager.register("Name", handler)

    manager.handle(text, 1, 2)

    assert len(handler.calls) == 1
    chat_id, user_id, raw, args, services = handler.calls[0]
    assert (chat_id, user_id, raw, args) == (1, 2, text, ["arg1", "arg2"])
    assert services is manager.services


def test_echo_scenario(manager: CommandManager) -> None:
    handler = Recorder()
    manager.register("echo", handler)
    manager.handle("/echo hello world", 1, 2)
    assert handler.calls[0][3] == ["hello", "world"]


def test_whitespace_is_collapsed(manager: CommandManager) -> None:
    handler = Recorder()
    manager.register("echo", handler)
    manager.handle('/echo   "quoted   words"  ', 1, 2)
    assert handler.calls[0][3] == ['"quoted', 'words"']


def test_non_command_text_is_ignored(manager: CommandManager, fake_api: FakeApi) -> None:
    handler = Recorder()
    manager.register("echo", handler)

    manager.handle("echo /echo", 1, 2)

    assert handler.calls == []
    assert fake_api.calls == []


def test_unknown_command_sends_one_help_pointer(
    manager: CommandManager, fake_api: FakeApi
) -> None:
    manager.handle("/frobnicate now", 9, 2)

    assert fake_api.calls == [
        (
            "sendMessage",
            {
                "chat_id": 9,
                "text": "Unknown command: /frobnicate. Use /help to see available commands.",
            },
        )
    ]


def test_last_registration_wins(manager: CommandManager) -> None:
    first, second = Recorder(), Recorder()
    manager.register("dup", first)
    manager.register("DUP", second)

    manager.handle("/dup", 1, 2)

    assert first.calls == []
    assert len(second.calls) == 1


def test_bot_username_suffix_is_stripped(manager: CommandManager) -> None:
    handler = Recorder()
    manager.register("start", handler)
    manager.handle("/start@MyBot", 1, 2)
    assert len(handler.calls) == 1


def test_handler_errors_propagate(manager: CommandManager) -> None:
    def broken(*args: Any) -> None:
        raise RuntimeError("handler failed")

    manager.register("broken", broken)
    with pytest.raises(RuntimeError, match="handler failed"):
        manager.handle("/broken", 1, 2)


def test_custom_prefix(services: Services, fake_api: FakeApi) -> None:
    manager = CommandManager(services, prefix="!")
    handler = Recorder()
    manager.register("ping", handler)

    manager.handle("!ping", 1, 2)
    manager.handle("/ping", 1, 2)
    manager.handle("!pong", 1, 2)

    assert len(handler.calls) == 1
    assert fake_api.sent_texts() == ["Unknown command: !pong. Use !help to see available commands."]


def test_empty_prefix_rejected(services: Services) -> None:
    with pytest.raises(ValueError):
        CommandManager(services, prefix="")


def test_prefix_defaults_to_services_and_is_shared(services: Services) -> None:
    services.command_prefix = "."
    manager = CommandManager(services)
    assert manager.prefix == "."

    CommandManager(services, prefix="!")
    assert services.command_prefix == "!"
    assert services.forms.command_prefix == "!"
