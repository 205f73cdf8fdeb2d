"""Document, chunk and result data structures for RAG."""

from typing import Any, Optional
from pydantic import BaseModel, Field


class Document(BaseModel):
    """A document to be chunked and indexed.

    Attributes:
        id: Unique identifier for the document
        content: The text content of the document
        metadata: Additional metadata about the document
    """

    id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        content_preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"Document(id={self.id!r}, content={content_preview!r})"


class Chunk(BaseModel):
    """A chunk of a document.

    Attributes:
        id: Chunk identifier, ``<document_id>_chunk_<chunk_index>``
        document_id: ID of the parent document
        content: The text content of the chunk
        chunk_index: Zero-based position of the chunk within its document
        metadata: Parent metadata plus chunk_index, original_document_id
            and total_chunks
        start_index: Start character index in the normalized document
        end_index: End character index in the normalized document
    """

    id: str
    document_id: str
    content: str
    chunk_index: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    start_index: int = 0
    end_index: int = 0

    def __repr__(self) -> str:
        content_preview = self.content[:30] + "..." if len(self.content) > 30 else self.content
        return f"Chunk(id={self.id!r}, doc_id={self.document_id!r}, content={content_preview!r})"


class ScoredPassage(BaseModel):
    """A retrieved chunk with its similarity score.

    Attributes:
        id: ID of the indexed chunk
        score: Similarity score as reported by the index (higher is better)
        content: Chunk text stored alongside the vector
        metadata: Metadata stored alongside the vector
    """

    id: str
    score: float = 0.0
    content: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        return f"ScoredPassage(id={self.id!r}, score={self.score:.4f})"


class AnswerResult(BaseModel):
    """A generated answer together with the passages that grounded it."""

    answer: str
    sources: list[ScoredPassage] = Field(default_factory=list)
    conversation_id: Optional[str] = None


class VectorRecord(BaseModel):
    """A vector sent to the index on upsert."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class IndexMatch(BaseModel):
    """A single nearest-neighbour match returned by the index."""

    id: str
    score: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
