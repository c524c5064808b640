"""
Request body encoding for Bot API calls.

A parameter mapping is sent as JSON unless it carries a file somewhere, in
which case it becomes a multipart form. Files nested inside containers (media
groups, for example) are attached as separate parts and referenced from the
JSON-encoded container as ``attach://<part>``.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Set, Tuple

from telegram_bot_runtime.api.errors import FileError, ParseError
from telegram_bot_runtime.api.types import InputFile

JSON_CONTENT_TYPE = "application/json"
DEFAULT_MIME_TYPE = "application/octet-stream"

FilePart = Tuple[str, bytes, str]


@dataclass
class EncodedRequest:
    """Keyword arguments for ``requests.Session.post`` in one of two shapes."""

    json: Optional[Dict[str, Any]] = None
    data: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, FilePart] = field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)

    def as_kwargs(self) -> Dict[str, Any]:
        if self.is_multipart:
            # requests builds the multipart boundary header itself
            return {"data": self.data, "files": self.files}
        return {"json": self.json or {}, "headers": {"Content-Type": JSON_CONTENT_TYPE}}


def is_file_like(value: Any) -> bool:
    """Return whether ``value`` must travel as a binary part."""
    if isinstance(value, (InputFile, bytes, bytearray, Path)):
        return True
    return callable(getattr(value, "read", None))


def contains_file(value: Any) -> bool:
    """Recursively look for a file-like value inside mappings and sequences."""
    if is_file_like(value):
        return True
    if isinstance(value, Mapping):
        return any(contains_file(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(contains_file(v) for v in value)
    return False


def encode_request(params: Optional[Mapping[str, Any]]) -> EncodedRequest:
    """
    Encode a parameter mapping into a JSON or multipart request.

    None values are dropped, matching how optional Bot API parameters are omitted.

    Raises:
        FileError: An attached file could not be read.
        ParseError: A value could not be serialized.
    """
    cleaned = {k: v for k, v in (params or {}).items() if v is not None}

    if not contains_file(cleaned):
        try:
            json.dumps(cleaned)
        except (TypeError, ValueError) as e:
            raise ParseError(f"Cannot serialize request parameters: {e}") from e
        return EncodedRequest(json=cleaned)

    request = EncodedRequest()
    attach_names = _attach_names(reserved=set(cleaned))
    for key, value in cleaned.items():
        if is_file_like(value):
            request.files[key] = _file_part(value, default_name=key)
        elif isinstance(value, (Mapping, list, tuple)):
            nested = _attach_nested(value, request.files, attach_names)
            request.data[key] = _dumps(nested)
        else:
            request.data[key] = _scalar(value)
    return request


def _attach_names(reserved: Set[str]) -> Iterator[str]:
    """Yield part names for nested files, skipping top-level field names."""
    n = 0
    while True:
        name = f"file{n}"
        n += 1
        if name not in reserved:
            yield name


def _attach_nested(
    value: Any, files: Dict[str, FilePart], names: Iterator[str]
) -> Any:
    if is_file_like(value):
        name = next(names)
        files[name] = _file_part(value, default_name=name)
        return f"attach://{name}"
    if isinstance(value, Mapping):
        return {
            k: _attach_nested(v, files, names) for k, v in value.items() if v is not None
        }
    if isinstance(value, (list, tuple)):
        return [_attach_nested(v, files, names) for v in value]
    return value


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _dumps(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Cannot serialize request parameter: {e}") from e


def _file_part(value: Any, default_name: str) -> FilePart:
    """Read a file-like value into a ``(filename, bytes, mime_type)`` part."""
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    if isinstance(value, InputFile):
        filename = value.filename
        mime_type = value.mime_type
        value = value.content

    if isinstance(value, (bytes, bytearray)):
        content = bytes(value)
    elif isinstance(value, Path):
        try:
            content = value.read_bytes()
        except OSError as e:
            raise FileError(f"Cannot read file {value}: {e}") from e
        filename = filename or value.name
    else:
        # Read eagerly so a retried request sends the same bytes again
        try:
            content = value.read()
        except (OSError, ValueError) as e:
            raise FileError(f"Cannot read file object: {e}") from e
        if isinstance(content, str):
            content = content.encode("utf-8")
        name = getattr(value, "name", None)
        if isinstance(name, str) and name:
            filename = filename or os.path.basename(name)

    return (filename or default_name, content, mime_type or DEFAULT_MIME_TYPE)
