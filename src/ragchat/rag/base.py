"""Base classes and abstract interfaces for RAG components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .document import Chunk, Document, IndexMatch, VectorRecord


class BaseEmbedding(ABC):
    """Abstract base class for embedding models.

    Embedding models convert text into dense vector representations.
    """

    _probed_dimension: Optional[int] = None

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors, one per input text
        """
        pass

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query.

        Args:
            text: Query text to embed

        Returns:
            Embedding vector
        """
        pass

    async def get_dimension(self) -> int:
        """Return the embedding dimension.

        The dimension is probed once by embedding a test string and
        cached for the lifetime of the instance.
        """
        if self._probed_dimension is None:
            vector = await self.embed_query("test")
            self._probed_dimension = len(vector)
        return self._probed_dimension


class BaseVectorIndex(ABC):
    """Abstract base class for vector indexes.

    An instance is bound to one named index. Data operations are scoped
    to a namespace; the empty string is the default namespace.
    """

    def __init__(self, index_name: str):
        self.index_name = index_name

    @abstractmethod
    async def exists(self) -> bool:
        """Return True if the index has already been created."""
        pass

    @abstractmethod
    async def create_index(
        self,
        dimension: int,
        metric: str = "cosine",
        cloud: str = "aws",
        region: str = "us-east-1",
    ) -> None:
        """Create the index.

        Args:
            dimension: Vector dimension, constant for the index lifetime
            metric: Distance metric
            cloud: Cloud provider for serverless indexes
            region: Region for serverless indexes
        """
        pass

    @abstractmethod
    async def is_ready(self) -> bool:
        """Return True once the index accepts reads and writes."""
        pass

    @abstractmethod
    async def upsert(
        self,
        records: list["VectorRecord"],
        namespace: str = "",
    ) -> None:
        """Insert or overwrite vectors."""
        pass

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        namespace: str = "",
    ) -> list["IndexMatch"]:
        """Return up to top_k nearest matches, best first."""
        pass

    @abstractmethod
    async def delete_by_ids(self, ids: list[str], namespace: str = "") -> None:
        """Delete vectors by ID."""
        pass

    @abstractmethod
    async def delete_all(self, namespace: str = "") -> None:
        """Delete every vector in a namespace."""
        pass

    @abstractmethod
    async def stats(self) -> dict[str, Any]:
        """Return an implementation-defined summary of the index."""
        pass


class BaseChunker(ABC):
    """Abstract base class for document chunkers.

    Chunkers split documents into smaller pieces for indexing.
    """

    @abstractmethod
    def chunk(self, document: "Document") -> list["Chunk"]:
        """Split a document into chunks.

        Args:
            document: Document to chunk

        Returns:
            List of chunks
        """
        pass

    def chunk_documents(self, documents: list["Document"]) -> list["Chunk"]:
        """Chunk several documents, preserving per-document order."""
        chunks = []
        for document in documents:
            chunks.extend(self.chunk(document))
        return chunks
