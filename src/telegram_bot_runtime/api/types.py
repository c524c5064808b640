"""
Shapes of the Bot API objects the runtime reads.

Only the fields used by the dispatcher, forms and handlers are described;
everything else passes through as plain dicts.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, TypedDict, Union


class Chat(TypedDict, total=False):
    id: int
    type: str


class User(TypedDict, total=False):
    id: int
    is_bot: bool
    first_name: str
    username: str


class PhotoSize(TypedDict, total=False):
    file_id: str
    file_unique_id: str
    width: int
    height: int


# "from" is a keyword, so Message uses the functional syntax
Message = TypedDict(
    "Message",
    {
        "message_id": int,
        "from": User,
        "chat": Chat,
        "text": str,
        "date": int,
        "photo": List[PhotoSize],
        "audio": dict[str, Any],
        "document": dict[str, Any],
    },
    total=False,
)


class Update(TypedDict, total=False):
    update_id: int
    message: Message


@dataclass(frozen=True)
class InputFile:
    """
    A file to upload as part of a multipart request.

    Attributes:
        content: Raw bytes, an open binary file object, or a path on disk.
        filename: Name reported to the provider; derived from the path or file
            object when omitted.
        mime_type: Optional content type of the part.
    """

    content: Union[bytes, BinaryIO, Path]
    filename: Optional[str] = None
    mime_type: Optional[str] = None


# A remote handle (file_id or URL) or a file to upload
FileInput = Union[str, InputFile, bytes, BinaryIO, Path]
