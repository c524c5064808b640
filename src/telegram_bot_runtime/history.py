"""
Per-user stack of outbound calls that can be replayed.

``back`` repeats the most recent recorded call; it does not undo it. There is
no inverse for a send, so "back" here means "send that again".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 50


class ReplayClient(Protocol):
    """The part of the Bot API client the history stack needs."""

    def has_method(self, method: str) -> bool: ...

    def invoke(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...


@dataclass(frozen=True)
class HistoryEntry:
    """A recorded call: provider method name and the parameters it was sent with."""

    method: str
    data: Mapping[str, Any] = field(default_factory=dict)


class HistoryCache:
    """Holds one bounded LIFO stack of history entries per user."""

    def __init__(self, api: ReplayClient, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._api = api
        self._max_depth = max(1, max_depth)
        self._histories: Dict[int, List[HistoryEntry]] = {}

    def push(self, user_id: int, entry: HistoryEntry) -> None:
        stack = self._histories.setdefault(user_id, [])
        stack.append(entry)
        if len(stack) > self._max_depth:
            # Oldest entries go first
            del stack[: len(stack) - self._max_depth]

    def back(self, user_id: int) -> Any:
        """
        Pop the user's latest entry and replay it through the client.

        Returns the call result, or None when the stack is empty or the entry
        names a method the client does not know.
        """
        stack = self._histories.get(user_id)
        if not stack:
            return None
        entry = stack.pop()
        if not stack:
            del self._histories[user_id]
        if not self._api.has_method(entry.method):
            logger.warning(
                "Dropping history entry for user %s: unknown method %s",
                user_id,
                entry.method,
            )
            return None
        logger.info("Replaying %s for user %s", entry.method, user_id)
        return self._api.invoke(entry.method, entry.data)

    def delete(self, user_id: int) -> None:
        self._histories.pop(user_id, None)

    def depth(self, user_id: int) -> int:
        return len(self._histories.get(user_id, ()))
