"""Retrieval-augmented conversational answering.

This module provides:
- Document, chunk and passage data structures
- Boundary-aware chunking with overlap
- Embedding providers (OpenAI, Pinecone inference, fake)
- Vector indexes (memory, Pinecone, ChromaDB)
- Indexing and retrieval over a namespace
- Grounded answer composition with source labels
- A pipeline that ties ingestion and answering together

Example:
    ```python
    from ragchat.providers import ConversationalGenerator, OpenAIProvider
    from ragchat.rag import (
        Document,
        FakeEmbedding,
        MemoryVectorIndex,
        RAGPipeline,
    )

    pipeline = RAGPipeline(
        embedding=FakeEmbedding(),
        index=MemoryVectorIndex(),
        generator=ConversationalGenerator(OpenAIProvider(), model="gpt-4o-mini"),
    )

    await pipeline.initialize()
    await pipeline.add_documents([Document(id="1", content="Python is a programming language")])

    result = await pipeline.ask("What is Python?", conversation_id="user-1")
    print(result.answer, [s.id for s in result.sources])
    ```

From configuration:
    ```python
    from ragchat.rag import RAGPipeline
    from ragchat.utils import load_config

    pipeline = RAGPipeline.from_config(load_config("ragchat.yaml"))
    ```
"""

# Data structures
from .document import (
    AnswerResult,
    Chunk,
    Document,
    IndexMatch,
    ScoredPassage,
    VectorRecord,
)

# Base classes
from .base import BaseChunker, BaseEmbedding, BaseVectorIndex

# Embedding providers
from .embeddings import FakeEmbedding, OpenAIEmbedding, PineconeEmbedding

# Vector indexes
from .vectorstore import (
    ChromaVectorIndex,
    MemoryVectorIndex,
    PineconeVectorIndex,
    cosine_similarity,
    dot_product,
)

# Chunking
from .chunking import BoundaryChunker, DocumentProcessor, normalize_text

# Indexing and retrieval
from .indexer import Indexer
from .retriever import VectorRetriever

# Answering
from .assistant import Assistant

# Pipeline
from .pipeline import RAGPipeline
from .factory import (
    build_conversation_store,
    build_embedding,
    build_index,
    build_pipeline,
    build_provider,
)

__all__ = [
    # Data structures
    "AnswerResult",
    "Chunk",
    "Document",
    "IndexMatch",
    "ScoredPassage",
    "VectorRecord",
    # Base classes
    "BaseChunker",
    "BaseEmbedding",
    "BaseVectorIndex",
    # Embeddings
    "FakeEmbedding",
    "OpenAIEmbedding",
    "PineconeEmbedding",
    # Vector indexes
    "ChromaVectorIndex",
    "MemoryVectorIndex",
    "PineconeVectorIndex",
    "cosine_similarity",
    "dot_product",
    # Chunking
    "BoundaryChunker",
    "DocumentProcessor",
    "normalize_text",
    # Indexing and retrieval
    "Indexer",
    "VectorRetriever",
    # Answering
    "Assistant",
    # Pipeline
    "RAGPipeline",
    "build_conversation_store",
    "build_embedding",
    "build_index",
    "build_pipeline",
    "build_provider",
]
