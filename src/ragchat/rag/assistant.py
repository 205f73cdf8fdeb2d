"""Answer composition: retrieved passages in, grounded answer out."""

from typing import Any, Optional, Sequence

from ragchat.core.message import Message
from ragchat.providers.base import GenerationService
from ragchat.utils.logging import get_logger

from .document import AnswerResult, ScoredPassage
from .retriever import VectorRetriever

logger = get_logger(__name__)


class Assistant:
    """Answer questions from retrieved passages.

    Passages are rendered as ``[Source N] <content>`` blocks in rank
    order and joined by blank lines. The context is kept within
    ``max_context_chars``: passages are taken in rank order until the next
    one would not fit, and if even the first does not fit it is cut to the
    budget. The passages that made it into the context are returned as
    the answer's sources.
    """

    PROMPT_TEMPLATE = """You are a helpful assistant. Answer the following question using only the provided context. If the answer cannot be found in the context, say so explicitly.

Context:
{context}

Question: {question}

Answer:"""

    SYSTEM_TEMPLATE = """You are a helpful assistant. Answer questions using only the following context:

{context}

If the answer cannot be found in the context, say so explicitly."""

    def __init__(
        self,
        retriever: VectorRetriever,
        generator: GenerationService,
        top_k: int = 5,
        max_context_chars: Optional[int] = 12000,
    ):
        """Initialize the assistant.

        Args:
            retriever: Retriever for passages
            generator: Generation service for answers
            top_k: Default number of passages to retrieve
            max_context_chars: Maximum context length in characters
                (None for no limit)
        """
        if top_k < 1:
            raise ValueError("top_k must be at least 1")
        if max_context_chars is not None and max_context_chars < 1:
            raise ValueError("max_context_chars must be positive")

        self.retriever = retriever
        self.generator = generator
        self.top_k = top_k
        self.max_context_chars = max_context_chars

    @staticmethod
    def _render(index: int, content: str) -> str:
        return f"[Source {index}] {content}"

    def build_context(
        self,
        passages: list[ScoredPassage],
    ) -> tuple[str, list[ScoredPassage]]:
        """Render passages into a context block within the length budget.

        Returns:
            The context text and the passages it contains
        """
        blocks: list[str] = []
        used: list[ScoredPassage] = []
        length = 0

        for passage in passages:
            block = self._render(len(blocks) + 1, passage.content)
            added = len(block) + (2 if blocks else 0)

            if self.max_context_chars is not None and length + added > self.max_context_chars:
                if not blocks:
                    blocks.append(block[: self.max_context_chars])
                    used.append(passage)
                logger.debug(
                    f"Context budget of {self.max_context_chars} chars reached; "
                    f"kept {len(used)} of {len(passages)} passages"
                )
                break

            blocks.append(block)
            used.append(passage)
            length += added

        return "\n\n".join(blocks), used

    def build_prompt(self, question: str, context: str) -> str:
        """Build the single-shot grounding prompt."""
        return self.PROMPT_TEMPLATE.format(context=context, question=question)

    def build_system_message(self, context: str) -> Message:
        """Build the system message used by history-aware answering."""
        return Message.system(self.SYSTEM_TEMPLATE.format(context=context))

    async def search(self, query: str, k: Optional[int] = None) -> list[ScoredPassage]:
        """Retrieve passages without generating an answer."""
        return await self.retriever.retrieve(query, self.top_k if k is None else k)

    async def ask(
        self,
        question: str,
        conversation_id: Optional[str] = None,
        k: Optional[int] = None,
    ) -> AnswerResult:
        """Answer a question from retrieved passages.

        Args:
            question: The question
            conversation_id: Conversation to answer within (None for a
                stateless answer)
            k: Number of passages to retrieve (default: top_k)
        """
        passages = await self.search(question, k)
        context, sources = self.build_context(passages)

        answer = await self.generator.generate(
            self.build_prompt(question, context),
            conversation_id,
        )

        return AnswerResult(
            answer=answer,
            sources=sources,
            conversation_id=conversation_id,
        )

    async def ask_with_history(
        self,
        question: str,
        messages: Sequence[Message | dict[str, Any]],
        conversation_id: Optional[str] = None,
        k: Optional[int] = None,
    ) -> AnswerResult:
        """Answer with an explicit message list.

        Passages are retrieved for ``question``; a system message holding
        the context is placed before ``messages``, which should end with
        the user's question.
        """
        if not messages:
            raise ValueError("messages must not be empty")

        passages = await self.search(question, k)
        context, sources = self.build_context(passages)

        conversation: list[Message | dict[str, Any]] = [
            self.build_system_message(context),
            *messages,
        ]
        answer = await self.generator.generate_with_history(conversation, conversation_id)

        return AnswerResult(
            answer=answer,
            sources=sources,
            conversation_id=conversation_id,
        )

    async def clear_history(self, conversation_id: str) -> None:
        """Delete a conversation's history."""
        await self.generator.clear_history(conversation_id)

    async def get_history(self, conversation_id: str) -> list[Message]:
        """Return a conversation's history, or an empty list."""
        return await self.generator.get_history(conversation_id)
