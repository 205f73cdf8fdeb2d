"""Retriever implementations."""

from ragchat.utils.logging import get_logger

from .base import BaseEmbedding, BaseVectorIndex
from .document import IndexMatch, ScoredPassage

logger = get_logger(__name__)


class VectorRetriever:
    """Vector similarity retriever.

    Embeds the query and returns the index's nearest matches in the order
    the index ranked them.
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
        namespace: str = "",
    ):
        """Initialize the vector retriever.

        Args:
            embedding: Embedding model for queries
            index: Vector index to search
            namespace: Namespace to search in
        """
        self.embedding = embedding
        self.index = index
        self.namespace = namespace

    async def retrieve(self, query: str, k: int = 5) -> list[ScoredPassage]:
        """Retrieve up to k passages for a query."""
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")

        query_embedding = await self.embedding.embed_query(query)
        matches = await self.index.query(query_embedding, top_k=k, namespace=self.namespace)

        logger.debug(f"Retrieved {len(matches)} passages for query {query[:50]!r}")
        return [self._to_passage(match) for match in matches]

    @staticmethod
    def _to_passage(match: IndexMatch) -> ScoredPassage:
        content = match.metadata.get("content")
        return ScoredPassage(
            id=match.id,
            score=match.score or 0.0,
            content=content if isinstance(content, str) else "",
            metadata=dict(match.metadata),
        )
