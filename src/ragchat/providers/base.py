"""
Chat completion backends and the generation service interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol, Sequence

from pydantic import BaseModel

from ragchat.core.message import Message


class Completion(BaseModel):
    """Text of one model reply plus the token counts the backend reported."""
    text: str
    finish_reason: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMProvider(ABC):
    """
    A chat completion backend.

    Backends receive the conversation as ``Message`` objects and translate
    it to their own wire shape. An empty reply is returned as a
    ``Completion`` with empty text; deciding whether that is an error is
    left to the caller.
    """

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion:
        """
        Answer a conversation.

        Args:
            messages: Conversation turns, oldest first
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """


class GenerationService(Protocol):
    """
    What the answer composer needs from a text generator.

    With a conversation identifier, generation reads and extends that
    conversation's history; without one it is stateless.
    """

    async def generate(self, prompt: str, conversation_id: str | None = None) -> str:
        ...

    async def generate_with_history(
        self,
        messages: Sequence[Message | dict[str, Any]],
        conversation_id: str | None = None,
    ) -> str:
        ...

    async def clear_history(self, conversation_id: str) -> None:
        ...

    async def get_history(self, conversation_id: str) -> list[Message]:
        ...
