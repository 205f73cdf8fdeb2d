"""Vector index implementations."""

import asyncio
import math
from typing import Any, Callable, Optional

from ragchat.utils.logging import get_logger

from .base import BaseVectorIndex
from .document import IndexMatch, VectorRecord

logger = get_logger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimension")

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (norm_a * norm_b)


def dot_product(a: list[float], b: list[float]) -> float:
    """Calculate the dot product of two vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimension")
    return sum(x * y for x, y in zip(a, b))


class MemoryVectorIndex(BaseVectorIndex):
    """In-memory vector index for testing and small datasets.

    Performs exact search over every vector in a namespace. Writing to an
    index that was never created creates it implicitly with the
    dimension of the first vector.
    """

    METRICS: dict[str, Callable[[list[float], list[float]], float]] = {
        "cosine": cosine_similarity,
        "dotproduct": dot_product,
    }

    def __init__(self, index_name: str = "memory") -> None:
        super().__init__(index_name)
        self.dimension: Optional[int] = None
        self.metric = "cosine"
        self._created = False
        self._namespaces: dict[str, dict[str, VectorRecord]] = {}

    async def exists(self) -> bool:
        return self._created

    async def create_index(
        self,
        dimension: int,
        metric: str = "cosine",
        cloud: str = "aws",
        region: str = "us-east-1",
    ) -> None:
        if metric not in self.METRICS:
            raise ValueError(f"Unsupported metric for memory index: {metric}")

        self.dimension = dimension
        self.metric = metric
        self._created = True
        logger.debug(f"Created memory index '{self.index_name}' (dimension={dimension})")

    async def is_ready(self) -> bool:
        return self._created

    def _check_dimension(self, vector: list[float]) -> None:
        if self.dimension is None:
            self.dimension = len(vector)
            self._created = True
        elif len(vector) != self.dimension:
            raise ValueError(
                f"Vector dimension {len(vector)} does not match index dimension {self.dimension}"
            )

    async def upsert(self, records: list[VectorRecord], namespace: str = "") -> None:
        store = self._namespaces.setdefault(namespace, {})
        for record in records:
            self._check_dimension(record.values)
            store[record.id] = record.model_copy(deep=True)

        logger.debug(f"Upserted {len(records)} vectors into namespace '{namespace}'")

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        namespace: str = "",
    ) -> list[IndexMatch]:
        store = self._namespaces.get(namespace)
        if not store:
            return []

        score_fn = self.METRICS[self.metric]
        scored = [
            (record, score_fn(vector, record.values))
            for record in store.values()
        ]
        scored.sort(key=lambda x: x[1], reverse=True)

        return [
            IndexMatch(id=record.id, score=score, metadata=dict(record.metadata))
            for record, score in scored[:top_k]
        ]

    async def delete_by_ids(self, ids: list[str], namespace: str = "") -> None:
        store = self._namespaces.get(namespace, {})
        for id in ids:
            store.pop(id, None)

    async def delete_all(self, namespace: str = "") -> None:
        self._namespaces.pop(namespace, None)

    async def stats(self) -> dict[str, Any]:
        namespaces = {
            name: {"vector_count": len(records)}
            for name, records in self._namespaces.items()
        }
        return {
            "index_name": self.index_name,
            "dimension": self.dimension,
            "metric": self.metric,
            "namespaces": namespaces,
            "total_vector_count": sum(ns["vector_count"] for ns in namespaces.values()),
        }


class PineconeVectorIndex(BaseVectorIndex):
    """Pinecone serverless index.

    The Pinecone client is synchronous, so every call runs in the default
    executor.

    Note: Requires the 'pinecone' extra to be installed.
    """

    def __init__(self, index_name: str, api_key: Optional[str] = None):
        """Initialize the Pinecone index wrapper.

        Args:
            index_name: Name of the Pinecone index
            api_key: Pinecone API key (optional, uses env var if not provided)
        """
        super().__init__(index_name)
        self.api_key = api_key
        self._client = None
        self._index = None

    def _get_client(self):
        """Get or create the Pinecone client."""
        if self._client is None:
            try:
                from pinecone import Pinecone
            except ImportError:
                raise ImportError(
                    "Pinecone index requires the 'pinecone' package. "
                    "Install it with: pip install pinecone"
                )

            self._client = Pinecone(api_key=self.api_key) if self.api_key else Pinecone()
        return self._client

    def _get_index(self):
        """Get a handle on the data plane of the index."""
        if self._index is None:
            self._index = self._get_client().Index(self.index_name)
        return self._index

    async def _run(self, fn: Callable[[], Any]) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fn)

    async def exists(self) -> bool:
        client = self._get_client()
        names = await self._run(lambda: client.list_indexes().names())
        return self.index_name in names

    async def create_index(
        self,
        dimension: int,
        metric: str = "cosine",
        cloud: str = "aws",
        region: str = "us-east-1",
    ) -> None:
        from pinecone import ServerlessSpec

        client = self._get_client()
        await self._run(
            lambda: client.create_index(
                name=self.index_name,
                dimension=dimension,
                metric=metric,
                spec=ServerlessSpec(cloud=cloud, region=region),
            )
        )
        logger.info(f"Created Pinecone index '{self.index_name}' (dimension={dimension})")

    async def is_ready(self) -> bool:
        client = self._get_client()
        description = await self._run(lambda: client.describe_index(self.index_name))
        return bool(description.status["ready"])

    async def upsert(self, records: list[VectorRecord], namespace: str = "") -> None:
        index = self._get_index()
        vectors = [
            {"id": r.id, "values": r.values, "metadata": r.metadata}
            for r in records
        ]
        await self._run(lambda: index.upsert(vectors=vectors, namespace=namespace))

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        namespace: str = "",
    ) -> list[IndexMatch]:
        index = self._get_index()
        response = await self._run(
            lambda: index.query(
                vector=vector,
                top_k=top_k,
                namespace=namespace,
                include_metadata=True,
            )
        )

        return [
            IndexMatch(
                id=match.id,
                score=match.score,
                metadata=dict(match.metadata or {}),
            )
            for match in (response.matches or [])
        ]

    async def delete_by_ids(self, ids: list[str], namespace: str = "") -> None:
        index = self._get_index()
        await self._run(lambda: index.delete(ids=ids, namespace=namespace))

    async def delete_all(self, namespace: str = "") -> None:
        index = self._get_index()
        await self._run(lambda: index.delete(delete_all=True, namespace=namespace))

    async def stats(self) -> dict[str, Any]:
        index = self._get_index()
        stats = await self._run(index.describe_index_stats)
        return stats.to_dict() if hasattr(stats, "to_dict") else dict(stats)


class ChromaVectorIndex(BaseVectorIndex):
    """ChromaDB-backed index.

    Each namespace maps to its own collection, ``<index_name>`` for the
    default namespace and ``<index_name>__<namespace>`` otherwise.

    Note: Requires the 'chroma' extra to be installed.
    """

    SPACES = {"cosine": "cosine", "dotproduct": "ip", "euclidean": "l2"}

    def __init__(
        self,
        index_name: str = "ragchat",
        persist_directory: Optional[str] = None,
    ):
        """Initialize the ChromaDB index.

        Args:
            index_name: Base name for the collections
            persist_directory: Directory for persistent storage (None for in-memory)
        """
        super().__init__(index_name)
        self.persist_directory = persist_directory
        self.metric = "cosine"
        self._client = None
        self._collections: dict[str, Any] = {}

    def _get_client(self):
        """Get or create the ChromaDB client."""
        if self._client is None:
            try:
                import chromadb
            except ImportError:
                raise ImportError(
                    "ChromaDB index requires 'chromadb'. "
                    "Install it with: pip install chromadb"
                )

            if self.persist_directory:
                self._client = chromadb.PersistentClient(path=self.persist_directory)
            else:
                self._client = chromadb.Client()
        return self._client

    def _collection_name(self, namespace: str) -> str:
        return f"{self.index_name}__{namespace}" if namespace else self.index_name

    def _get_collection(self, namespace: str):
        """Get or create the collection for a namespace."""
        if namespace not in self._collections:
            self._collections[namespace] = self._get_client().get_or_create_collection(
                name=self._collection_name(namespace),
                metadata={"hnsw:space": self.SPACES[self.metric]},
            )
        return self._collections[namespace]

    async def _collection(self, namespace: str):
        return await self._run(lambda: self._get_collection(namespace))

    def _list_names(self) -> list[str]:
        collections = self._get_client().list_collections()
        return [c if isinstance(c, str) else c.name for c in collections]

    async def _run(self, fn: Callable[[], Any]) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fn)

    async def exists(self) -> bool:
        names = await self._run(self._list_names)
        return self.index_name in names

    async def create_index(
        self,
        dimension: int,
        metric: str = "cosine",
        cloud: str = "aws",
        region: str = "us-east-1",
    ) -> None:
        if metric not in self.SPACES:
            raise ValueError(f"Unsupported metric for ChromaDB: {metric}")

        self.metric = metric
        await self._collection("")
        logger.info(f"Created ChromaDB collection '{self.index_name}'")

    async def is_ready(self) -> bool:
        return await self.exists()

    async def upsert(self, records: list[VectorRecord], namespace: str = "") -> None:
        collection = await self._collection(namespace)
        await self._run(
            lambda: collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.values for r in records],
                metadatas=[r.metadata for r in records],
            )
        )
        logger.debug(f"Upserted {len(records)} vectors into '{collection.name}'")

    def _to_score(self, distance: float) -> float:
        # Chroma reports distances; l2 has no bounded similarity
        if self.metric == "euclidean":
            return -distance
        return 1 - distance

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        namespace: str = "",
    ) -> list[IndexMatch]:
        collection = await self._collection(namespace)

        count = await self._run(collection.count)
        if count == 0:
            return []

        results = await self._run(
            lambda: collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, count),
                include=["metadatas", "distances"],
            )
        )

        matches = []
        if results and results["ids"] and results["ids"][0]:
            for i, chunk_id in enumerate(results["ids"][0]):
                metadata = results["metadatas"][0][i] if results["metadatas"] else None
                distance = results["distances"][0][i] if results["distances"] else None
                matches.append(IndexMatch(
                    id=chunk_id,
                    score=self._to_score(distance) if distance is not None else None,
                    metadata=dict(metadata or {}),
                ))

        return matches

    async def delete_by_ids(self, ids: list[str], namespace: str = "") -> None:
        collection = await self._collection(namespace)
        await self._run(lambda: collection.delete(ids=ids))

    async def delete_all(self, namespace: str = "") -> None:
        client = self._get_client()
        name = self._collection_name(namespace)
        if name in await self._run(self._list_names):
            await self._run(lambda: client.delete_collection(name))
        self._collections.pop(namespace, None)

    async def stats(self) -> dict[str, Any]:
        namespaces = {}
        prefix = f"{self.index_name}__"

        for name in await self._run(self._list_names):
            if name == self.index_name:
                namespace = ""
            elif name.startswith(prefix):
                namespace = name[len(prefix):]
            else:
                continue
            collection = await self._collection(namespace)
            namespaces[namespace] = {"vector_count": await self._run(collection.count)}

        return {
            "index_name": self.index_name,
            "metric": self.metric,
            "namespaces": namespaces,
            "total_vector_count": sum(ns["vector_count"] for ns in namespaces.values()),
        }
