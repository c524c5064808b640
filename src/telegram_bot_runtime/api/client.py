"""
Resilient client for the Telegram Bot API.

Every call goes through the same pipeline: encode the parameters (JSON or
multipart), POST them, classify the envelope into a result or a typed error,
and retry when the error kind allows it.
"""

import logging
import time
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence

import requests

from telegram_bot_runtime.api.encoding import EncodedRequest, encode_request
from telegram_bot_runtime.api.errors import (
    InvalidResponseError,
    MethodError,
    NetworkError,
    ParseError,
    RateLimitError,
    TelegramBotApiError,
    UnauthorizedError,
    is_retryable,
)
from telegram_bot_runtime.api.types import FileInput, Message, Update, User
from telegram_bot_runtime.runtime_config import RuntimeConfig

logger = logging.getLogger(__name__)


def classify_envelope(method: str, body: Any) -> Any:
    """
    Turn a decoded response body into the call result or raise the matching error.

    Args:
        method: The Bot API method that produced the body (used in error details).
        body: The decoded JSON body.

    Returns:
        The envelope's ``result`` field when ``ok`` is true.
    """
    if not isinstance(body, dict) or not isinstance(body.get("ok"), bool):
        raise InvalidResponseError(f"{method} returned a malformed envelope")

    if body["ok"]:
        return body.get("result")

    error_code = body.get("error_code")
    description = body.get("description")
    parameters = body.get("parameters")
    if not isinstance(parameters, dict):
        parameters = {}

    if error_code in (401, 403):
        raise UnauthorizedError(description or f"{method} unauthorized ({error_code})")
    if error_code == 429:
        retry_after = parameters.get("retry_after")
        raise RateLimitError(
            description or f"{method} rate limited",
            retry_after=retry_after if isinstance(retry_after, int) else None,
        )
    if isinstance(description, str) and description:
        raise MethodError(
            description,
            method=method,
            parameters=parameters or None,
            error_code=error_code if isinstance(error_code, int) else None,
        )
    raise InvalidResponseError(f"{method} failed without a description")


def classify_response(method: str, response: requests.Response) -> Any:
    """Decode an HTTP response body and classify it (see classify_envelope)."""
    try:
        body = response.json()
    except ValueError as e:
        raise InvalidResponseError(
            f"{method} returned a non-JSON body (HTTP {response.status_code})"
        ) from e
    return classify_envelope(method, body)


class TelegramBotApi:
    """
    Typed, retrying client for the Bot API.

    The client holds no session state beyond its configuration and the HTTP
    connection pool, so one instance is shared by every component.
    """

    # Provider method names replayable through invoke()
    METHODS: FrozenSet[str] = frozenset(
        {
            "getMe",
            "getUpdates",
            "sendMessage",
            "sendPhoto",
            "sendAudio",
            "sendDocument",
            "deleteMessage",
        }
    )

    def __init__(
        self, config: RuntimeConfig, session: Optional[requests.Session] = None
    ) -> None:
        self.config = config
        self._session = session or requests.Session()

    def __enter__(self) -> "TelegramBotApi":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def has_method(self, method: str) -> bool:
        return method in self.METHODS

    def invoke(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Call a known provider method by name, as stored in history entries."""
        if not self.has_method(method):
            raise ValueError(f"Unknown Bot API method: {method}")
        return self.call(method, params)

    def call(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Execute ``method`` with ``params`` and return the envelope result.

        Rate-limited calls are retried up to ``config.max_attempts`` times in
        total; every other error kind is raised immediately.
        """
        request = encode_request(params)
        max_attempts = max(1, self.config.max_attempts)
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._execute(method, request, timeout)
            except TelegramBotApiError as e:
                if attempt >= max_attempts or not is_retryable(
                    e, self.config.retry_on_network_error
                ):
                    raise
                delay = self._retry_delay(e)
                logger.warning(
                    "%s failed (%s), retrying in %.1fs (attempt %d/%d)",
                    method,
                    e,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(delay)

    def _execute(
        self, method: str, request: EncodedRequest, timeout: Optional[float]
    ) -> Any:
        url = f"{self.config.api_url}/{method}"
        logger.debug(
            "Calling %s (%s)", method, "multipart" if request.is_multipart else "json"
        )
        try:
            response = self._session.post(
                url,
                timeout=timeout or self.config.request_timeout,
                **request.as_kwargs(),
            )
        except requests.RequestException as e:
            raise NetworkError(f"{method} request failed: {self._redact(str(e))}") from e
        return classify_response(method, response)

    def _retry_delay(self, error: TelegramBotApiError) -> float:
        if isinstance(error, RateLimitError) and error.retry_after:
            return float(error.retry_after)
        return self.config.retry_backoff

    def _redact(self, text: str) -> str:
        # Transport errors echo the URL, which embeds the token
        if self.config.bot_token:
            return text.replace(self.config.bot_token, "<token>")
        return text

    # Typed methods

    def get_me(self) -> User:
        result: User = self.call("getMe")
        return result

    def get_updates(
        self,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        timeout: Optional[int] = None,
        allowed_updates: Optional[Sequence[str]] = None,
    ) -> List[Update]:
        """Long-poll for updates; the transport timeout covers the poll window."""
        params: Dict[str, Any] = {
            "offset": offset,
            "limit": limit,
            "timeout": timeout,
            "allowed_updates": list(allowed_updates) if allowed_updates else None,
        }
        result = self.call(
            "getUpdates",
            params,
            timeout=self.config.request_timeout + (timeout or 0),
        )
        if not isinstance(result, list):
            raise ParseError("getUpdates result is not a list")
        return result

    def send_message(self, chat_id: int, text: str, **params: Any) -> Message:
        result: Message = self.call(
            "sendMessage", {"chat_id": chat_id, "text": text, **params}
        )
        return result

    def send_photo(self, chat_id: int, photo: FileInput, **params: Any) -> Message:
        result: Message = self.call(
            "sendPhoto", {"chat_id": chat_id, "photo": photo, **params}
        )
        return result

    def send_audio(self, chat_id: int, audio: FileInput, **params: Any) -> Message:
        result: Message = self.call(
            "sendAudio", {"chat_id": chat_id, "audio": audio, **params}
        )
        return result

    def send_document(
        self, chat_id: int, document: FileInput, **params: Any
    ) -> Message:
        result: Message = self.call(
            "sendDocument", {"chat_id": chat_id, "document": document, **params}
        )
        return result

    def delete_message(self, chat_id: int, message_id: int) -> bool:
        return bool(
            self.call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})
        )
