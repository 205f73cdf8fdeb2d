"""
Conversation history storage.

- ConversationStore: interface keyed by conversation identifier
- InMemoryConversationStore: process-local, bounded by turn count and idle time
- RedisConversationStore: shared and persistent, bounded the same way
"""

from ragchat.memory.conversation import (
    ConversationStore,
    InMemoryConversationStore,
    KeyedLock,
    trim_history,
)
from ragchat.memory.redis_store import RedisConversationStore

__all__ = [
    "ConversationStore",
    "InMemoryConversationStore",
    "KeyedLock",
    "RedisConversationStore",
    "trim_history",
]
