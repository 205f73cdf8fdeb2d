"""Redis-backed conversation store."""

import math
from typing import Optional

from ragchat.core.message import Message

from .conversation import ConversationStore, trim_history


class RedisConversationStore(ConversationStore):
    """Redis-based conversation storage.

    Every conversation is a Redis list of JSON-encoded messages, so
    history survives restarts and is shared between processes. Lists are
    bounded with ``trim_history`` like the in-memory store, and expire
    after ``ttl_seconds`` without writes.

    The per-conversation lock only serializes writers inside this
    process.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        max_turns: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        key_prefix: str = "ragchat:conversation:",
    ):
        """Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            max_turns: Maximum messages kept per conversation (None = unbounded)
            ttl_seconds: Idle expiry in seconds (None = no expiration)
            key_prefix: Key prefix for all conversations
        """
        super().__init__()
        if max_turns is not None and max_turns < 1:
            raise ValueError("max_turns must be at least 1")

        self.redis_url = redis_url
        self.max_turns = max_turns
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self._client = None

    def _get_client(self):
        """Get or create Redis client."""
        if self._client is None:
            try:
                import redis.asyncio as redis
            except ImportError:
                raise ImportError(
                    "Redis conversation store requires 'redis'. "
                    "Install it with: pip install redis"
                )
            self._client = redis.from_url(self.redis_url)
        return self._client

    def _get_key(self, conversation_id: str) -> str:
        """Get full key for a conversation."""
        return f"{self.key_prefix}{conversation_id}"

    def _expire(self, pipe, key: str) -> None:
        if self.ttl_seconds is not None:
            pipe.expire(key, max(1, math.ceil(self.ttl_seconds)))

    async def _write(self, key: str, messages: list[Message]) -> None:
        async with self._get_client().pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if messages:
                pipe.rpush(key, *[m.model_dump_json() for m in messages])
                self._expire(pipe, key)
            await pipe.execute()

    async def append(self, conversation_id: str, message: Message) -> None:
        key = self._get_key(conversation_id)

        if self.max_turns is not None:
            # whole-history rewrite keeps the pinned system turn and pair boundaries
            history = await self.get(conversation_id)
            if len(history) >= self.max_turns:
                await self._write(key, trim_history([*history, message], self.max_turns))
                return

        async with self._get_client().pipeline(transaction=True) as pipe:
            pipe.rpush(key, message.model_dump_json())
            self._expire(pipe, key)
            await pipe.execute()

    async def get(self, conversation_id: str) -> list[Message]:
        client = self._get_client()
        raw = await client.lrange(self._get_key(conversation_id), 0, -1)
        return [Message.model_validate_json(item) for item in raw]

    async def clear(self, conversation_id: str) -> None:
        client = self._get_client()
        await client.delete(self._get_key(conversation_id))

    async def replace(self, conversation_id: str, messages: list[Message]) -> None:
        await self._write(
            self._get_key(conversation_id),
            trim_history(list(messages), self.max_turns),
        )

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
