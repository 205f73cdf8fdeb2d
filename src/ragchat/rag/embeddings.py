"""Embedding model implementations."""

import asyncio
import hashlib
import math
import re
from typing import Any, Optional

from ragchat.exceptions import EmbeddingError
from ragchat.utils.logging import get_logger

from .base import BaseEmbedding

logger = get_logger(__name__)


class FakeEmbedding(BaseEmbedding):
    """Deterministic embedding built from hashed word counts.

    Each lowercase word adds one to its hashed bucket and the vector is
    L2-normalized. Bucket counts never go negative, so a shared word always
    raises cosine similarity even when unrelated words collide with it.
    Empty text embeds to the zero vector.
    """

    def __init__(self, dimension: int = 384, seed: int = 42):
        """Initialize the fake embedding.

        Args:
            dimension: Dimension of the embedding vectors
            seed: Hash seed for reproducibility
        """
        self._dimension = dimension
        self.seed = seed

    async def get_dimension(self) -> int:
        return self._dimension

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension

        for token in re.findall(r"\b\w+\b", text.lower()):
            digest = hashlib.sha256(f"{self.seed}:{token}".encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimension
            vector[bucket] += 1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model.

    Uses OpenAI's embedding API (text-embedding-3-small/large).

    Note: Requires the 'openai' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: int = 100,
    ):
        """Initialize the OpenAI embedding model.

        Args:
            model: Model name (text-embedding-3-small, text-embedding-3-large)
            api_key: OpenAI API key (optional, uses env var if not provided)
            base_url: Optional base URL for API
            batch_size: Texts per embedding request
        """
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.batch_size = batch_size
        self._client = None

    async def get_dimension(self) -> int:
        if self.model in self.MODEL_DIMENSIONS:
            return self.MODEL_DIMENSIONS[self.model]
        return await super().get_dimension()

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "OpenAI embedding requires the 'openai' package. "
                    "Install it with: pip install openai"
                )

            kwargs = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url

            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents, one request per batch."""
        client = self._get_client()
        all_embeddings = []

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]

            response = await client.embeddings.create(
                model=self.model,
                input=batch,
            )

            batch_embeddings = [item.embedding for item in response.data]
            if len(batch_embeddings) != len(batch):
                raise EmbeddingError(
                    f"Expected {len(batch)} embeddings from OpenAI, got {len(batch_embeddings)}"
                )
            all_embeddings.extend(batch_embeddings)
            logger.debug(f"Embedded batch of {len(batch)} texts with {self.model}")

        return all_embeddings

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query using OpenAI API."""
        client = self._get_client()

        response = await client.embeddings.create(
            model=self.model,
            input=text,
        )

        if not response.data:
            raise EmbeddingError("No embedding data returned from OpenAI")
        return response.data[0].embedding


class PineconeEmbedding(BaseEmbedding):
    """Embedding through the Pinecone inference API.

    Passages and queries are embedded with the matching ``input_type`` so
    asymmetric models such as multilingual-e5-large behave as intended.

    Note: Requires the 'pinecone' extra to be installed.
    """

    # Pinecone inference accepts at most 96 inputs per request
    MAX_BATCH_SIZE = 96

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "multilingual-e5-large",
        batch_size: int = MAX_BATCH_SIZE,
    ):
        """Initialize the Pinecone embedding model.

        Args:
            api_key: Pinecone API key (optional, uses env var if not provided)
            model: Hosted embedding model name
            batch_size: Texts per embedding request (capped at 96)
        """
        self.api_key = api_key
        self.model = model
        self.batch_size = min(batch_size, self.MAX_BATCH_SIZE)
        self._client = None

    def _get_client(self):
        """Get or create the Pinecone client."""
        if self._client is None:
            try:
                from pinecone import Pinecone
            except ImportError:
                raise ImportError(
                    "Pinecone embedding requires the 'pinecone' package. "
                    "Install it with: pip install pinecone"
                )

            self._client = Pinecone(api_key=self.api_key) if self.api_key else Pinecone()
        return self._client

    async def _embed(self, texts: list[str], input_type: str) -> list[list[float]]:
        client = self._get_client()

        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            lambda: client.inference.embed(
                model=self.model,
                inputs=texts,
                parameters={"input_type": input_type, "truncate": "END"},
            ),
        )

        data = getattr(result, "data", None)
        if not data:
            raise EmbeddingError("No embedding data returned from Pinecone")

        return [self._values(item) for item in data]

    @staticmethod
    def _values(item: Any) -> list[float]:
        """Extract dense values from one embedding entry."""
        if isinstance(item, dict):
            values = item.get("values")
        else:
            values = getattr(item, "values", None)

        if not values:
            raise EmbeddingError("No embedding values returned from Pinecone")
        return list(values)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed passages sequentially in batches."""
        all_embeddings = []

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]
            all_embeddings.extend(await self._embed(batch, "passage"))
            logger.debug(f"Embedded batch of {len(batch)} texts with {self.model}")

        return all_embeddings

    async def embed_query(self, text: str) -> list[float]:
        embeddings = await self._embed([text], "query")
        return embeddings[0]
