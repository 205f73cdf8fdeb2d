"""
Test configuration and fixtures.
"""

import asyncio
from typing import Sequence

import pytest

from ragchat.core.message import Message
from ragchat.memory import InMemoryConversationStore
from ragchat.providers import Completion, ConversationalGenerator, LLMProvider
from ragchat.rag import FakeEmbedding, MemoryVectorIndex, RAGPipeline
from ragchat.rag.chunking import BoundaryChunker


class ScriptedProvider(LLMProvider):
    """LLM backend that replays canned replies and records every call."""

    def __init__(self, replies: list[str] | None = None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.delay = delay
        self.calls: list[list[dict[str, str]]] = []

    async def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion:
        self.calls.append([m.as_dict() for m in messages])
        if self.delay:
            await asyncio.sleep(self.delay)

        reply = self.replies.pop(0) if self.replies else f"reply {len(self.calls)}"
        return Completion(text=reply, finish_reason="stop", input_tokens=10, output_tokens=2)


class CountingEmbedding(FakeEmbedding):
    """Fake embedding that counts query embeddings."""

    def __init__(self, dimension: int = 384):
        super().__init__(dimension=dimension)
        self.query_calls = 0

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls += 1
        return await super().embed_query(text)


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def embedding():
    return CountingEmbedding()


@pytest.fixture
def index():
    return MemoryVectorIndex("test-index")


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def generator(provider, store):
    return ConversationalGenerator(provider, store, model="test-model")


@pytest.fixture
def pipeline(embedding, index, generator):
    return RAGPipeline(
        embedding=embedding,
        index=index,
        generator=generator,
        chunker=BoundaryChunker(chunk_size=200, overlap=40),
        top_k=3,
    )


@pytest.fixture
def sample_texts():
    return {
        "python": "Python is a high-level programming language created by Guido van Rossum.",
        "rust": "Rust is a systems programming language focused on memory safety.",
        "coffee": "Espresso is brewed by forcing hot water through finely ground coffee.",
    }
