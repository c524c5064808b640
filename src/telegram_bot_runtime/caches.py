"""
In-memory caches shared by command handlers.

InputFileCache remembers what to send for a name (usually the file_id the
provider returned after the first upload); MessageCache remembers sent
messages by an arbitrary key.
"""

from typing import Dict, Optional

from telegram_bot_runtime.api.types import FileInput, Message


class InputFileCache:
    """Maps a name to a file reference that can be sent again."""

    def __init__(self) -> None:
        self._files: Dict[str, FileInput] = {}

    def get(self, name: str) -> Optional[FileInput]:
        return self._files.get(name)

    def has(self, name: str) -> bool:
        return name in self._files

    def save(self, name: str, input_file: FileInput) -> None:
        self._files[name] = input_file

    def __len__(self) -> int:
        return len(self._files)


class MessageCache:
    """Maps a key to the last message stored under it."""

    def __init__(self) -> None:
        self._messages: Dict[str, Message] = {}

    def get(self, key: str) -> Optional[Message]:
        return self._messages.get(key)

    def set(self, key: str, message: Message) -> None:
        self._messages[key] = message
