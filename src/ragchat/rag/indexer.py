"""Index lifecycle and chunk ingestion."""

import asyncio
import time
from typing import Any, Optional

from ragchat.exceptions import IndexInitializationTimeout
from ragchat.utils.logging import get_logger

from .base import BaseEmbedding, BaseVectorIndex
from .document import Chunk, VectorRecord

logger = get_logger(__name__)


class Indexer:
    """Create the vector index and write embedded chunks into it.

    Example:
        ```python
        indexer = Indexer(embedding, index, namespace="docs")
        await indexer.initialize()
        await indexer.index_chunks(chunks)
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
        namespace: str = "",
        upsert_batch_size: int = 100,
        poll_interval: float = 1.0,
        max_wait: float = 60.0,
        metric: str = "cosine",
        cloud: str = "aws",
        region: str = "us-east-1",
    ):
        """Initialize the indexer.

        Args:
            embedding: Embedding model for chunk texts
            index: Vector index to write to
            namespace: Namespace for every write
            upsert_batch_size: Records per upsert request
            poll_interval: Seconds between readiness checks after creation
            max_wait: Seconds to wait for a new index before giving up
            metric: Distance metric used when creating the index
            cloud: Cloud provider used when creating the index
            region: Region used when creating the index
        """
        if upsert_batch_size < 1:
            raise ValueError("upsert_batch_size must be at least 1")

        self.embedding = embedding
        self.index = index
        self.namespace = namespace
        self.upsert_batch_size = upsert_batch_size
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.metric = metric
        self.cloud = cloud
        self.region = region

    async def initialize(self, dimension: Optional[int] = None) -> None:
        """Create the index if it does not exist yet and wait until ready.

        Args:
            dimension: Vector dimension; probed from the embedding model
                when omitted

        Raises:
            IndexInitializationTimeout: If a new index is not ready within
                ``max_wait`` seconds
        """
        try:
            if await self.index.exists():
                logger.debug(f"Index '{self.index.index_name}' already exists")
                return

            if dimension is None:
                dimension = await self.embedding.get_dimension()

            await self.index.create_index(
                dimension,
                metric=self.metric,
                cloud=self.cloud,
                region=self.region,
            )
            await self.wait_until_ready()
        except Exception as e:
            logger.error(f"Error initializing index '{self.index.index_name}': {e}")
            raise

        logger.info(f"Index '{self.index.index_name}' ready (dimension={dimension})")

    async def wait_until_ready(self) -> None:
        """Poll the index until it reports ready or ``max_wait`` elapses."""
        start = time.monotonic()

        while time.monotonic() - start < self.max_wait:
            try:
                if await self.index.is_ready():
                    return
            except Exception as e:
                # A freshly created index can reject describe calls briefly
                logger.debug(f"Index '{self.index.index_name}' not ready yet: {e}")
            await asyncio.sleep(self.poll_interval)

        raise IndexInitializationTimeout(self.index.index_name, self.max_wait)

    def _to_record(self, chunk: Chunk, values: list[float]) -> VectorRecord:
        return VectorRecord(
            id=chunk.id,
            values=values,
            metadata={**chunk.metadata, "content": chunk.content},
        )

    async def index_chunk(self, chunk: Chunk) -> str:
        """Embed and store a single chunk."""
        values = await self.embedding.embed_query(chunk.content)
        await self.index.upsert([self._to_record(chunk, values)], namespace=self.namespace)
        return chunk.id

    async def index_chunks(self, chunks: list[Chunk]) -> list[str]:
        """Embed chunks and upsert them batch by batch.

        Batches are sent one after another. A failing batch aborts the
        remaining ones; batches already sent stay in the index.

        Returns:
            IDs of the indexed chunks
        """
        if not chunks:
            return []

        embeddings = await self.embedding.embed_documents([c.content for c in chunks])
        if len(embeddings) != len(chunks):
            raise ValueError(
                f"Embedding service returned {len(embeddings)} vectors for {len(chunks)} chunks"
            )

        records = [self._to_record(c, v) for c, v in zip(chunks, embeddings)]

        for i in range(0, len(records), self.upsert_batch_size):
            batch = records[i : i + self.upsert_batch_size]
            try:
                await self.index.upsert(batch, namespace=self.namespace)
            except Exception as e:
                logger.error(
                    f"Upsert failed for batch starting at record {i} "
                    f"({len(records) - i} records not written): {e}"
                )
                raise
            logger.debug(f"Upserted batch of {len(batch)} records")

        return [r.id for r in records]

    async def delete(self, ids: list[str]) -> None:
        """Delete chunks by ID."""
        await self.index.delete_by_ids(ids, namespace=self.namespace)

    async def delete_all(self) -> None:
        """Delete every chunk in the namespace."""
        await self.index.delete_all(namespace=self.namespace)

    async def stats(self) -> dict[str, Any]:
        """Return index statistics."""
        return await self.index.stats()
