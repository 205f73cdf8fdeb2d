"""
Conversation history stores.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ragchat.core.message import Message, Role


def trim_history(messages: list[Message], max_turns: int | None) -> list[Message]:
    """
    Bound a history to ``max_turns`` messages, oldest dropped first.

    A leading system message is kept and does not count toward the bound.
    After dropping, the kept dialogue is advanced to its first user turn so
    it never opens with an orphaned assistant reply.
    """
    if max_turns is None:
        return list(messages)

    pinned: list[Message] = []
    dialogue = list(messages)
    if dialogue and dialogue[0].role == Role.SYSTEM:
        pinned, dialogue = dialogue[:1], dialogue[1:]

    if len(dialogue) <= max_turns:
        return pinned + dialogue

    dialogue = dialogue[-max_turns:]
    while dialogue and dialogue[0].role != Role.USER:
        dialogue.pop(0)
    return pinned + dialogue


class KeyedLock:
    """
    Mutual exclusion per key.

    A lock exists only while some task holds or waits for it, so keys
    that are no longer used cost nothing.

    Example:
        ```python
        locks = KeyedLock()
        async with locks("user-1"):
            ...
        ```
    """

    def __init__(self) -> None:
        # key -> [lock, number of holders and waiters]
        self._entries: dict[str, list] = {}

    @asynccontextmanager
    async def __call__(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = [asyncio.Lock(), 0]
            self._entries[key] = entry

        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class ConversationStore(ABC):
    """
    Abstract base class for per-conversation message logs.

    Writers that need several store calls to happen as one step hold
    ``lock(conversation_id)`` around them.
    """

    def __init__(self) -> None:
        self._locks = KeyedLock()

    def lock(self, conversation_id: str):
        """Return an async context manager serializing one conversation."""
        return self._locks(conversation_id)

    @abstractmethod
    async def append(self, conversation_id: str, message: Message) -> None:
        """
        Append one message, creating the conversation if needed.

        Args:
            conversation_id: Conversation identifier
            message: Message to append
        """
        pass

    @abstractmethod
    async def get(self, conversation_id: str) -> list[Message]:
        """
        Get the messages of a conversation in order.

        Returns:
            The messages, or an empty list for unknown identifiers
        """
        pass

    @abstractmethod
    async def clear(self, conversation_id: str) -> None:
        """Remove a conversation. Unknown identifiers are ignored."""
        pass

    @abstractmethod
    async def replace(self, conversation_id: str, messages: list[Message]) -> None:
        """Overwrite a conversation with the given messages."""
        pass


class InMemoryConversationStore(ConversationStore):
    """
    Process-local conversation storage.

    Each conversation is bounded by ``trim_history(messages, max_turns)``
    on every write. Conversations idle for longer than ``ttl_seconds`` are
    evicted. ``None`` disables either bound.
    """

    def __init__(
        self,
        max_turns: int | None = None,
        ttl_seconds: float | None = None,
    ):
        super().__init__()
        if max_turns is not None and max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.max_turns = max_turns
        self.ttl_seconds = ttl_seconds
        self._histories: dict[str, list[Message]] = {}
        self._touched: dict[str, float] = {}

    def _expired(self, conversation_id: str, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        touched = self._touched.get(conversation_id)
        return touched is not None and now - touched > self.ttl_seconds

    def _evict(self, conversation_id: str) -> None:
        self._histories.pop(conversation_id, None)
        self._touched.pop(conversation_id, None)

    def prune(self) -> int:
        """Evict every expired conversation. Returns how many were removed."""
        now = time.monotonic()
        expired = [cid for cid in self._histories if self._expired(cid, now)]
        for cid in expired:
            self._evict(cid)
        return len(expired)

    async def append(self, conversation_id: str, message: Message) -> None:
        if self.ttl_seconds is not None:
            self.prune()

        history = self._histories.get(conversation_id, [])
        self._histories[conversation_id] = trim_history(
            [*history, message.model_copy()], self.max_turns
        )
        self._touched[conversation_id] = time.monotonic()

    async def get(self, conversation_id: str) -> list[Message]:
        if self._expired(conversation_id, time.monotonic()):
            self._evict(conversation_id)

        history = self._histories.get(conversation_id)
        if history is None:
            return []
        return [m.model_copy() for m in history]

    async def clear(self, conversation_id: str) -> None:
        self._evict(conversation_id)

    async def replace(self, conversation_id: str, messages: list[Message]) -> None:
        self._histories[conversation_id] = trim_history(
            [m.model_copy() for m in messages], self.max_turns
        )
        self._touched[conversation_id] = time.monotonic()

    def conversation_ids(self) -> list[str]:
        """Identifiers of the stored conversations."""
        return list(self._histories)

    def __len__(self) -> int:
        return len(self._histories)
