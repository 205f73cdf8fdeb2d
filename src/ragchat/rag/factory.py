"""Build pipeline components from configuration."""

import os

from ragchat.exceptions import ConfigurationError
from ragchat.memory.conversation import ConversationStore, InMemoryConversationStore
from ragchat.memory.redis_store import RedisConversationStore
from ragchat.providers.anthropic import AnthropicProvider
from ragchat.providers.base import LLMProvider
from ragchat.providers.generator import ConversationalGenerator
from ragchat.providers.openai import OpenAIProvider
from ragchat.utils.config import RAGConfig

from .base import BaseEmbedding, BaseVectorIndex
from .chunking import BoundaryChunker
from .embeddings import FakeEmbedding, OpenAIEmbedding, PineconeEmbedding
from .pipeline import RAGPipeline
from .vectorstore import ChromaVectorIndex, MemoryVectorIndex, PineconeVectorIndex

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}

DEFAULT_EMBEDDING_MODELS = {
    "openai": "text-embedding-3-small",
    "pinecone": "multilingual-e5-large",
}


def _pinecone_api_key(config: RAGConfig) -> str:
    api_key = config.pinecone_api_key or os.environ.get("PINECONE_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "Pinecone requires an API key: set pinecone_api_key or PINECONE_API_KEY"
        )
    return api_key


def build_embedding(config: RAGConfig) -> BaseEmbedding:
    """Create the embedding model named by ``embedding_provider``."""
    if config.embedding_provider == "fake":
        return FakeEmbedding()

    model = config.embedding_model or DEFAULT_EMBEDDING_MODELS[config.embedding_provider]

    if config.embedding_provider == "openai":
        return OpenAIEmbedding(model=model, api_key=config.embedding_api_key)
    if config.embedding_provider == "pinecone":
        return PineconeEmbedding(api_key=_pinecone_api_key(config), model=model)

    raise ConfigurationError(f"Unknown embedding provider: {config.embedding_provider}")


def build_index(config: RAGConfig) -> BaseVectorIndex:
    """Create the vector index named by ``vector_store``."""
    if not config.index_name:
        raise ConfigurationError("index_name must not be empty")

    if config.vector_store == "memory":
        return MemoryVectorIndex(config.index_name)
    if config.vector_store == "pinecone":
        return PineconeVectorIndex(config.index_name, api_key=_pinecone_api_key(config))
    if config.vector_store == "chroma":
        return ChromaVectorIndex(config.index_name, persist_directory=config.chroma_path)

    raise ConfigurationError(f"Unknown vector store: {config.vector_store}")


def build_provider(config: RAGConfig) -> LLMProvider:
    """Create the LLM backend named by ``llm_provider``."""
    if config.llm_provider == "openai":
        return OpenAIProvider(api_key=config.llm_api_key, base_url=config.llm_base_url)
    if config.llm_provider == "anthropic":
        return AnthropicProvider(api_key=config.llm_api_key, base_url=config.llm_base_url)

    raise ConfigurationError(f"Unknown LLM provider: {config.llm_provider}")


def build_conversation_store(config: RAGConfig) -> ConversationStore:
    """Create the conversation store named by ``conversation_store``."""
    if config.conversation_store == "memory":
        return InMemoryConversationStore(
            max_turns=config.max_history_turns,
            ttl_seconds=config.history_ttl_seconds,
        )
    if config.conversation_store == "redis":
        return RedisConversationStore(
            redis_url=config.redis_url,
            max_turns=config.max_history_turns,
            ttl_seconds=config.history_ttl_seconds,
        )

    raise ConfigurationError(f"Unknown conversation store: {config.conversation_store}")


def build_pipeline(config: RAGConfig) -> RAGPipeline:
    """Assemble a pipeline from configuration.

    Raises:
        ConfigurationError: If a required credential or name is missing
    """
    generator = ConversationalGenerator(
        build_provider(config),
        store=build_conversation_store(config),
        model=config.llm_model or DEFAULT_MODELS[config.llm_provider],
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )

    return RAGPipeline(
        embedding=build_embedding(config),
        index=build_index(config),
        generator=generator,
        chunker=BoundaryChunker(config.chunk_size, config.chunk_overlap),
        namespace=config.namespace,
        top_k=config.top_k,
        max_context_chars=config.max_context_chars,
        upsert_batch_size=config.upsert_batch_size,
        index_poll_interval=config.index_poll_interval,
        index_max_wait=config.index_max_wait,
        cloud=config.cloud,
        region=config.region,
    )
