"""RAG pipeline facade."""

from typing import Any, Optional, Sequence, TYPE_CHECKING

from ragchat.core.message import Message
from ragchat.utils.logging import get_logger

from .assistant import Assistant
from .base import BaseChunker, BaseEmbedding, BaseVectorIndex
from .chunking import BoundaryChunker, DocumentProcessor
from .document import AnswerResult, Chunk, Document, ScoredPassage
from .indexer import Indexer
from .retriever import VectorRetriever

if TYPE_CHECKING:
    from ragchat.providers.base import GenerationService
    from ragchat.utils.config import RAGConfig

logger = get_logger(__name__)


class RAGPipeline:
    """Complete RAG (Retrieval-Augmented Generation) pipeline.

    Ingestion normalizes, chunks, embeds and upserts documents; queries
    retrieve passages and generate a grounded answer, optionally within
    a conversation.

    Example:
        ```python
        pipeline = RAGPipeline(
            embedding=FakeEmbedding(),
            index=MemoryVectorIndex(),
            generator=ConversationalGenerator(OpenAIProvider(), model="gpt-4o-mini"),
        )

        await pipeline.initialize()
        await pipeline.add_documents([Document(id="1", content="Python is a language.")])

        result = await pipeline.ask("What is Python?", conversation_id="user-1")
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
        generator: "GenerationService",
        chunker: Optional[BaseChunker] = None,
        namespace: str = "",
        top_k: int = 5,
        max_context_chars: Optional[int] = 12000,
        upsert_batch_size: int = 100,
        index_poll_interval: float = 1.0,
        index_max_wait: float = 60.0,
        cloud: str = "aws",
        region: str = "us-east-1",
    ):
        """Initialize the RAG pipeline.

        Args:
            embedding: Embedding model for chunks and queries
            index: Vector index holding the chunks
            generator: Generation service for answers
            chunker: Document chunker (default: BoundaryChunker)
            namespace: Index namespace for all reads and writes
            top_k: Default number of passages per question
            max_context_chars: Context length budget (None for no limit)
            upsert_batch_size: Records per upsert request
            index_poll_interval: Seconds between readiness checks
            index_max_wait: Seconds to wait for a new index
            cloud: Cloud provider for a new serverless index
            region: Region for a new serverless index
        """
        self.embedding = embedding
        self.index = index
        self.generator = generator
        self.namespace = namespace

        self.processor = DocumentProcessor(chunker or BoundaryChunker())
        self.indexer = Indexer(
            embedding,
            index,
            namespace=namespace,
            upsert_batch_size=upsert_batch_size,
            poll_interval=index_poll_interval,
            max_wait=index_max_wait,
            cloud=cloud,
            region=region,
        )
        self.retriever = VectorRetriever(embedding, index, namespace=namespace)
        self.assistant = Assistant(
            self.retriever,
            generator,
            top_k=top_k,
            max_context_chars=max_context_chars,
        )

    @classmethod
    def from_config(cls, config: "RAGConfig") -> "RAGPipeline":
        """Build a pipeline from configuration."""
        from .factory import build_pipeline

        return build_pipeline(config)

    @property
    def chunker(self) -> BaseChunker:
        return self.processor.chunker

    async def initialize(self, dimension: Optional[int] = None) -> None:
        """Create the vector index if needed."""
        await self.indexer.initialize(dimension)

    # Ingestion

    def process_documents(self, documents: list[Document]) -> list[Document]:
        """Normalize documents without chunking them."""
        return self.processor.process_documents(documents)

    def chunk_documents(self, documents: list[Document]) -> list[Chunk]:
        """Chunk documents."""
        return self.processor.chunk_documents(documents)

    def process_and_chunk(self, documents: list[Document]) -> list[Chunk]:
        """Normalize and chunk documents."""
        return self.processor.process_and_chunk(documents)

    async def index_chunks(self, chunks: list[Chunk]) -> list[str]:
        """Embed and store pre-built chunks."""
        return await self.indexer.index_chunks(chunks)

    async def add_documents(self, documents: list[Document]) -> list[str]:
        """Normalize, chunk, embed and store documents.

        Returns:
            IDs of the stored chunks
        """
        chunks = self.process_and_chunk(documents)
        chunk_ids = await self.indexer.index_chunks(chunks)

        logger.info(f"Indexed {len(documents)} documents ({len(chunk_ids)} chunks)")
        return chunk_ids

    async def delete_documents(self, ids: list[str]) -> None:
        """Delete stored chunks by ID."""
        await self.indexer.delete(ids)

    async def delete_all(self) -> None:
        """Delete every stored chunk in the namespace."""
        await self.indexer.delete_all()

    async def get_stats(self) -> dict[str, Any]:
        """Return index statistics."""
        return await self.indexer.stats()

    # Querying

    async def search(self, query: str, k: Optional[int] = None) -> list[ScoredPassage]:
        """Retrieve passages without generating an answer."""
        return await self.assistant.search(query, k)

    async def ask(
        self,
        question: str,
        conversation_id: Optional[str] = None,
        k: Optional[int] = None,
    ) -> AnswerResult:
        """Answer a question, optionally within a conversation."""
        return await self.assistant.ask(question, conversation_id, k)

    async def ask_with_history(
        self,
        question: str,
        messages: Sequence[Message | dict[str, Any]],
        conversation_id: Optional[str] = None,
        k: Optional[int] = None,
    ) -> AnswerResult:
        """Answer with an explicit message list."""
        return await self.assistant.ask_with_history(question, messages, conversation_id, k)

    async def clear_history(self, conversation_id: str) -> None:
        """Delete a conversation's history."""
        await self.assistant.clear_history(conversation_id)

    async def get_history(self, conversation_id: str) -> list[Message]:
        """Return a conversation's history, or an empty list."""
        return await self.assistant.get_history(conversation_id)
