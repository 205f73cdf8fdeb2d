"""
ragchat - Conversational question answering over your own documents.
"""

from ragchat.core.message import Message, Role
from ragchat.exceptions import (
    ConfigurationError,
    EmbeddingError,
    GenerationError,
    IndexInitializationTimeout,
    RAGError,
)
from ragchat.memory import (
    ConversationStore,
    InMemoryConversationStore,
    RedisConversationStore,
)
from ragchat.providers import (
    AnthropicProvider,
    ConversationalGenerator,
    OpenAIProvider,
)
from ragchat.rag import (
    AnswerResult,
    Assistant,
    BoundaryChunker,
    Chunk,
    Document,
    DocumentProcessor,
    FakeEmbedding,
    MemoryVectorIndex,
    RAGPipeline,
    ScoredPassage,
    VectorRetriever,
    build_pipeline,
)
from ragchat.utils import RAGConfig, load_config

__version__ = "0.1.0"
__all__ = [
    # Core
    "Message",
    "Role",
    # Errors
    "ConfigurationError",
    "EmbeddingError",
    "GenerationError",
    "IndexInitializationTimeout",
    "RAGError",
    # Conversation
    "ConversationStore",
    "InMemoryConversationStore",
    "RedisConversationStore",
    "AnthropicProvider",
    "ConversationalGenerator",
    "OpenAIProvider",
    # RAG
    "AnswerResult",
    "Assistant",
    "BoundaryChunker",
    "Chunk",
    "Document",
    "DocumentProcessor",
    "FakeEmbedding",
    "MemoryVectorIndex",
    "RAGPipeline",
    "ScoredPassage",
    "VectorRetriever",
    "build_pipeline",
    # Config
    "RAGConfig",
    "load_config",
]
