"""
Conversation-aware text generation on top of an LLM provider.
"""

from typing import Any, Sequence

from ragchat.core.message import Message
from ragchat.exceptions import GenerationError
from ragchat.memory.conversation import ConversationStore, InMemoryConversationStore
from ragchat.providers.base import LLMProvider
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationalGenerator:
    """
    Generation service that keeps per-conversation history.

    The backend and the history store are both injected, so any provider
    can be combined with any store. Calls for the same conversation are
    serialized: a call holds the conversation's lock from reading the
    history until its reply is stored. History only changes after a
    successful completion.

    Example:
        ```python
        generator = ConversationalGenerator(
            OpenAIProvider(),
            store=InMemoryConversationStore(max_turns=50),
            model="gpt-4o-mini",
        )
        reply = await generator.generate("Hello", conversation_id="user-1")
        ```
    """

    def __init__(
        self,
        provider: LLMProvider,
        store: ConversationStore | None = None,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ):
        self.provider = provider
        self.store = store if store is not None else InMemoryConversationStore()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def _complete(self, messages: list[Message]) -> str:
        completion = await self.provider.complete(
            messages,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        logger.debug(
            f"{self.model}: {completion.input_tokens} prompt + "
            f"{completion.output_tokens} completion tokens "
            f"(finish_reason={completion.finish_reason})"
        )
        if not completion.text:
            raise GenerationError(
                f"Model {self.model} returned no content "
                f"(finish_reason={completion.finish_reason})"
            )
        return completion.text

    async def generate(self, prompt: str, conversation_id: str | None = None) -> str:
        """
        Generate a reply to a prompt.

        Args:
            prompt: User prompt
            conversation_id: When given, the prompt is answered in the
                context of this conversation and both turns are stored

        Returns:
            The generated reply
        """
        user_message = Message.user(prompt)

        if not conversation_id:
            return await self._complete([user_message])

        async with self.store.lock(conversation_id):
            history = await self.store.get(conversation_id)
            reply = await self._complete([*history, user_message])

            await self.store.append(conversation_id, user_message)
            await self.store.append(conversation_id, Message.assistant(reply))

        logger.debug(f"Conversation {conversation_id!r}: {len(history) + 2} turns")
        return reply

    async def generate_with_history(
        self,
        messages: Sequence[Message | dict[str, Any]],
        conversation_id: str | None = None,
    ) -> str:
        """
        Generate a reply to an explicit message list.

        Args:
            messages: Full conversation to answer, oldest first
            conversation_id: When given, the stored history is overwritten
                with ``messages`` plus the reply

        Returns:
            The generated reply
        """
        if not messages:
            raise ValueError("messages must not be empty")

        conversation = [Message.coerce(m) for m in messages]

        if not conversation_id:
            return await self._complete(conversation)

        async with self.store.lock(conversation_id):
            reply = await self._complete(conversation)
            await self.store.replace(
                conversation_id,
                [*conversation, Message.assistant(reply)],
            )

        return reply

    async def clear_history(self, conversation_id: str) -> None:
        """Delete the stored history of a conversation."""
        async with self.store.lock(conversation_id):
            await self.store.clear(conversation_id)

    async def get_history(self, conversation_id: str) -> list[Message]:
        """Return the stored history, or an empty list."""
        return await self.store.get(conversation_id)
