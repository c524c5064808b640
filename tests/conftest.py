from typing import Any, Dict, List, Mapping, Optional

import pytest

from telegram_bot_runtime.api.client import TelegramBotApi
from telegram_bot_runtime.caches import InputFileCache, MessageCache
from telegram_bot_runtime.forms import FormManager
from telegram_bot_runtime.history import HistoryCache
from telegram_bot_runtime.runtime_config import RuntimeConfig
from telegram_bot_runtime.services import Services


class DummyResponse:
    """Minimal dummy response for requests.Session.post stubbing."""

    def __init__(self, json_data: Any = None, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data


class FakeSession:
    """Records posts and replays a scripted list of responses or exceptions."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.posts: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> DummyResponse:
        self.posts.append({"url": url, **kwargs})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        assert isinstance(item, DummyResponse)
        return item

    def close(self) -> None:
        self.closed = True


class FakeApi:
    """In-memory stand-in for TelegramBotApi that records every call."""

    METHODS = TelegramBotApi.METHODS

    def __init__(self) -> None:
        self.calls: List[tuple[str, Dict[str, Any]]] = []
        self.update_batches: List[List[Dict[str, Any]]] = []
        self.closed = False
        self._next_message_id = 100

    def call(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        payload = dict(params or {})
        self.calls.append((method, payload))
        if method.startswith("send"):
            self._next_message_id += 1
            return {
                "message_id": self._next_message_id,
                "chat": {"id": payload.get("chat_id")},
                "text": payload.get("text"),
            }
        return True

    def has_method(self, method: str) -> bool:
        return method in self.METHODS

    def invoke(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.call(method, params)

    def send_message(self, chat_id: int, text: str, **params: Any) -> Any:
        return self.call("sendMessage", {"chat_id": chat_id, "text": text, **params})

    def send_photo(self, chat_id: int, photo: Any, **params: Any) -> Any:
        return self.call("sendPhoto", {"chat_id": chat_id, "photo": photo, **params})

    def get_updates(self, **params: Any) -> List[Dict[str, Any]]:
        self.calls.append(("getUpdates", params))
        return self.update_batches.pop(0) if self.update_batches else []

    def close(self) -> None:
        self.closed = True

    def sent_texts(self) -> List[str]:
        return [p["text"] for m, p in self.calls if m == "sendMessage"]

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [p for m, p in self.calls if m == method]


def make_update(
    update_id: int, text: str, chat_id: int = 1, user_id: int = 42
) -> Dict[str, Any]:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id * 10,
            "from": {"id": user_id, "is_bot": False, "first_name": "Ann"},
            "chat": {"id": chat_id, "type": "private"},
            "text": text,
        },
    }


@pytest.fixture
def config() -> RuntimeConfig:
    return RuntimeConfig(bot_token="123:ABC", retry_backoff=0.0, error_backoff=0.0)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def services(fake_api: FakeApi) -> Services:
    return Services(
        api=fake_api,  # type: ignore[arg-type]
        history=HistoryCache(fake_api),
        forms=FormManager(fake_api),
        messages=MessageCache(),
        files=InputFileCache(),
    )
