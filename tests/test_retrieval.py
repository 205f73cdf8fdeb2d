"""Tests for embeddings, vector indexes, indexing and retrieval."""

import asyncio
import threading
from types import SimpleNamespace

import pytest

from ragchat.exceptions import EmbeddingError, IndexInitializationTimeout
from ragchat.rag import (
    ChromaVectorIndex,
    Chunk,
    FakeEmbedding,
    Indexer,
    MemoryVectorIndex,
    PineconeEmbedding,
    PineconeVectorIndex,
    VectorRecord,
    VectorRetriever,
    cosine_similarity,
)


def make_chunks(texts: list[str], doc_id: str = "doc") -> list[Chunk]:
    return [
        Chunk(
            id=f"{doc_id}_chunk_{i}",
            document_id=doc_id,
            content=text,
            chunk_index=i,
            metadata={"original_document_id": doc_id, "chunk_index": i},
        )
        for i, text in enumerate(texts)
    ]


class NeverReadyIndex(MemoryVectorIndex):
    """Index whose creation never completes."""

    def __init__(self):
        super().__init__("slow")
        self.ready_checks = 0

    async def create_index(self, dimension, metric="cosine", cloud="aws", region="us-east-1"):
        self.create_args = (dimension, metric, cloud, region)

    async def is_ready(self) -> bool:
        self.ready_checks += 1
        return False


class FlakyReadyIndex(MemoryVectorIndex):
    """Index that errors on its first readiness check, then becomes ready."""

    def __init__(self):
        super().__init__("flaky")
        self.ready_checks = 0

    async def is_ready(self) -> bool:
        self.ready_checks += 1
        if self.ready_checks == 1:
            raise RuntimeError("index not found")
        return True


class FailingUpsertIndex(MemoryVectorIndex):
    """Index whose Nth upsert call fails."""

    def __init__(self, fail_on: int):
        super().__init__("failing")
        self.fail_on = fail_on
        self.upsert_calls = 0

    async def upsert(self, records, namespace=""):
        self.upsert_calls += 1
        if self.upsert_calls == self.fail_on:
            raise ConnectionError("upsert rejected")
        await super().upsert(records, namespace)


class TestFakeEmbedding:
    """Tests for FakeEmbedding."""

    @pytest.mark.asyncio
    async def test_dimension(self):
        embedding = FakeEmbedding(dimension=128)
        assert await embedding.get_dimension() == 128
        assert len(await embedding.embed_query("hello")) == 128

    @pytest.mark.asyncio
    async def test_deterministic(self):
        embedding = FakeEmbedding()
        assert await embedding.embed_query("same text") == await embedding.embed_query("same text")

    @pytest.mark.asyncio
    async def test_shared_words_rank_higher(self):
        embedding = FakeEmbedding()
        query = await embedding.embed_query("python language")
        related = await embedding.embed_query("python is a language")
        unrelated = await embedding.embed_query("espresso coffee beans")

        assert cosine_similarity(query, related) > cosine_similarity(query, unrelated)

    @pytest.mark.asyncio
    async def test_empty_text_is_zero_vector(self):
        embedding = FakeEmbedding(dimension=8)
        assert await embedding.embed_query("") == [0.0] * 8

    @pytest.mark.asyncio
    async def test_components_never_negative(self):
        embedding = FakeEmbedding(dimension=4)
        vector = await embedding.embed_query("many words crowd into very few buckets here")
        assert all(v >= 0 for v in vector)

    @pytest.mark.asyncio
    async def test_colliding_words_do_not_cancel_a_match(self):
        # "rust" and "on" share a bucket at this dimension and seed
        embedding = FakeEmbedding(dimension=256)
        query = await embedding.embed_query("Rust")
        rust_doc = await embedding.embed_query(
            "Rust is a systems programming language focused on memory safety."
        )
        python_doc = await embedding.embed_query(
            "Python is a high-level programming language created by Guido van Rossum."
        )

        assert cosine_similarity(query, rust_doc) > 0
        assert cosine_similarity(query, rust_doc) > cosine_similarity(query, python_doc)


class TestPineconeEmbedding:
    """Tests for PineconeEmbedding against a stub inference client."""

    def make_embedding(self, dimension: int = 4):
        embedding = PineconeEmbedding(api_key="test-key")
        calls = []

        def embed(model, inputs, parameters):
            calls.append((model, len(inputs), parameters))
            return SimpleNamespace(data=[{"values": [0.1] * dimension} for _ in inputs])

        embedding._client = SimpleNamespace(inference=SimpleNamespace(embed=embed))
        return embedding, calls

    @pytest.mark.asyncio
    async def test_documents_are_batched(self):
        embedding, calls = self.make_embedding()

        vectors = await embedding.embed_documents([f"text {i}" for i in range(200)])

        assert len(vectors) == 200
        assert [n for _, n, _ in calls] == [96, 96, 8]
        assert all(p["input_type"] == "passage" for _, _, p in calls)
        assert calls[0][0] == "multilingual-e5-large"

    @pytest.mark.asyncio
    async def test_query_input_type(self):
        embedding, calls = self.make_embedding()

        vector = await embedding.embed_query("question")

        assert vector == [0.1] * 4
        assert calls[0][2] == {"input_type": "query", "truncate": "END"}

    @pytest.mark.asyncio
    async def test_empty_response_raises(self):
        embedding = PineconeEmbedding(api_key="test-key")
        embedding._client = SimpleNamespace(
            inference=SimpleNamespace(embed=lambda **_: SimpleNamespace(data=[]))
        )

        with pytest.raises(EmbeddingError):
            await embedding.embed_query("question")

    def test_batch_size_capped(self):
        assert PineconeEmbedding(batch_size=500).batch_size == 96


class TestMemoryVectorIndex:
    """Tests for MemoryVectorIndex."""

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        index = MemoryVectorIndex("idx")
        assert not await index.exists()

        await index.create_index(3)

        assert await index.exists()
        assert await index.is_ready()
        assert index.dimension == 3

    @pytest.mark.asyncio
    async def test_query_ranks_by_similarity(self):
        index = MemoryVectorIndex()
        await index.upsert([
            VectorRecord(id="a", values=[1.0, 0.0], metadata={"content": "a"}),
            VectorRecord(id="b", values=[0.0, 1.0], metadata={"content": "b"}),
            VectorRecord(id="c", values=[0.7, 0.7], metadata={"content": "c"}),
        ])

        matches = await index.query([1.0, 0.1], top_k=2)

        assert [m.id for m in matches] == ["a", "c"]
        assert matches[0].score >= matches[1].score
        assert matches[0].metadata == {"content": "a"}

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self):
        index = MemoryVectorIndex()
        await index.upsert([VectorRecord(id="a", values=[1.0, 0.0], metadata={"v": 1})])
        await index.upsert([VectorRecord(id="a", values=[1.0, 0.0], metadata={"v": 2})])

        matches = await index.query([1.0, 0.0])

        assert len(matches) == 1
        assert matches[0].metadata == {"v": 2}

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self):
        index = MemoryVectorIndex()
        await index.create_index(2)

        with pytest.raises(ValueError):
            await index.upsert([VectorRecord(id="a", values=[1.0, 0.0, 0.0])])

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self):
        index = MemoryVectorIndex()
        await index.upsert([VectorRecord(id="a", values=[1.0, 0.0])], namespace="one")
        await index.upsert([VectorRecord(id="b", values=[1.0, 0.0])], namespace="two")

        assert [m.id for m in await index.query([1.0, 0.0], namespace="one")] == ["a"]
        assert await index.query([1.0, 0.0]) == []

        await index.delete_all(namespace="one")

        stats = await index.stats()
        assert stats["namespaces"] == {"two": {"vector_count": 1}}
        assert stats["total_vector_count"] == 1

    @pytest.mark.asyncio
    async def test_delete_by_ids(self):
        index = MemoryVectorIndex()
        await index.upsert([
            VectorRecord(id="a", values=[1.0, 0.0]),
            VectorRecord(id="b", values=[0.0, 1.0]),
        ])

        await index.delete_by_ids(["a", "missing"])

        assert [m.id for m in await index.query([1.0, 0.0])] == ["b"]

    @pytest.mark.asyncio
    async def test_unsupported_metric(self):
        with pytest.raises(ValueError):
            await MemoryVectorIndex().create_index(3, metric="euclidean")


class TestPineconeVectorIndex:
    """Tests for PineconeVectorIndex against a stub client."""

    def make_index(self):
        index = PineconeVectorIndex("docs", api_key="test-key")
        data_plane = SimpleNamespace(upserts=[])

        def upsert(vectors, namespace):
            data_plane.upserts.append((vectors, namespace))

        def query(vector, top_k, namespace, include_metadata):
            assert include_metadata
            return SimpleNamespace(matches=[
                SimpleNamespace(id="docs_chunk_0", score=0.9, metadata={"content": "hit"}),
                SimpleNamespace(id="docs_chunk_1", score=None, metadata=None),
            ])

        data_plane.upsert = upsert
        data_plane.query = query

        index._client = SimpleNamespace(
            list_indexes=lambda: SimpleNamespace(names=lambda: ["docs", "other"]),
            describe_index=lambda name: SimpleNamespace(status={"ready": True}),
            Index=lambda name: data_plane,
        )
        return index, data_plane

    @pytest.mark.asyncio
    async def test_exists_and_ready(self):
        index, _ = self.make_index()
        assert await index.exists()
        assert await index.is_ready()

    @pytest.mark.asyncio
    async def test_upsert_sends_dicts(self):
        index, data_plane = self.make_index()

        await index.upsert(
            [VectorRecord(id="x", values=[0.5], metadata={"content": "c"})],
            namespace="ns",
        )

        assert data_plane.upserts == [
            ([{"id": "x", "values": [0.5], "metadata": {"content": "c"}}], "ns")
        ]

    @pytest.mark.asyncio
    async def test_query_converts_matches(self):
        index, _ = self.make_index()

        matches = await index.query([0.1], top_k=2)

        assert [m.id for m in matches] == ["docs_chunk_0", "docs_chunk_1"]
        assert matches[0].metadata == {"content": "hit"}
        assert matches[1].score is None
        assert matches[1].metadata == {}


class TestIndexer:
    """Tests for Indexer."""

    @pytest.mark.asyncio
    async def test_initialize_creates_index(self, embedding, index):
        indexer = Indexer(embedding, index)

        await indexer.initialize()

        assert await index.exists()
        assert index.dimension == 384

    @pytest.mark.asyncio
    async def test_initialize_existing_index_is_noop(self, embedding, index):
        await index.create_index(384)
        indexer = Indexer(embedding, index)

        await indexer.initialize(dimension=999)

        assert index.dimension == 384

    @pytest.mark.asyncio
    async def test_initialize_times_out(self, embedding):
        index = NeverReadyIndex()
        indexer = Indexer(embedding, index, poll_interval=0.01, max_wait=0.05)

        with pytest.raises(IndexInitializationTimeout) as exc_info:
            await indexer.initialize()

        assert "Index initialization timeout" in str(exc_info.value)
        assert exc_info.value.index_name == "slow"
        assert index.ready_checks >= 1
        assert index.create_args == (384, "cosine", "aws", "us-east-1")

    @pytest.mark.asyncio
    async def test_readiness_errors_are_retried(self, embedding):
        index = FlakyReadyIndex()
        indexer = Indexer(embedding, index, poll_interval=0.01, max_wait=1.0)

        await indexer.initialize()

        assert index.ready_checks == 2

    @pytest.mark.asyncio
    async def test_index_chunks_stores_content(self, embedding, index):
        indexer = Indexer(embedding, index, namespace="docs")
        chunks = make_chunks(["alpha text", "beta text"])

        ids = await indexer.index_chunks(chunks)

        assert ids == ["doc_chunk_0", "doc_chunk_1"]
        matches = await index.query(await embedding.embed_query("alpha"), namespace="docs")
        assert matches[0].metadata["content"] == "alpha text"
        assert matches[0].metadata["original_document_id"] == "doc"

    @pytest.mark.asyncio
    async def test_index_chunks_batches(self, embedding):
        index = FailingUpsertIndex(fail_on=0)
        indexer = Indexer(embedding, index, upsert_batch_size=2)

        await indexer.index_chunks(make_chunks([f"text {i}" for i in range(5)]))

        assert index.upsert_calls == 3
        assert (await index.stats())["total_vector_count"] == 5

    @pytest.mark.asyncio
    async def test_failed_batch_aborts_the_rest(self, embedding):
        index = FailingUpsertIndex(fail_on=2)
        indexer = Indexer(embedding, index, upsert_batch_size=2)

        with pytest.raises(ConnectionError):
            await indexer.index_chunks(make_chunks([f"text {i}" for i in range(5)]))

        assert index.upsert_calls == 2
        assert (await index.stats())["total_vector_count"] == 2

    @pytest.mark.asyncio
    async def test_index_chunks_empty(self, embedding, index):
        assert await Indexer(embedding, index).index_chunks([]) == []

    @pytest.mark.asyncio
    async def test_index_chunk(self, embedding, index):
        indexer = Indexer(embedding, index)
        chunk = make_chunks(["single"])[0]

        assert await indexer.index_chunk(chunk) == chunk.id
        assert (await indexer.stats())["total_vector_count"] == 1

    @pytest.mark.asyncio
    async def test_delete(self, embedding, index):
        indexer = Indexer(embedding, index)
        await indexer.index_chunks(make_chunks(["one", "two"]))

        await indexer.delete(["doc_chunk_0"])
        assert (await indexer.stats())["total_vector_count"] == 1

        await indexer.delete_all()
        assert (await indexer.stats())["total_vector_count"] == 0

    def test_invalid_batch_size(self, embedding, index):
        with pytest.raises(ValueError):
            Indexer(embedding, index, upsert_batch_size=0)


class TestVectorRetriever:
    """Tests for VectorRetriever."""

    @pytest.mark.asyncio
    async def test_retrieve_ranked_passages(self, embedding, index, sample_texts):
        await Indexer(embedding, index).index_chunks(
            make_chunks(list(sample_texts.values()))
        )
        retriever = VectorRetriever(embedding, index)

        passages = await retriever.retrieve("Who created Python programming language?", k=2)

        assert len(passages) == 2
        assert "Python" in passages[0].content
        assert passages[0].score >= passages[1].score

    @pytest.mark.asyncio
    async def test_retrieve_empty_index(self, embedding, index):
        retriever = VectorRetriever(embedding, index)
        assert await retriever.retrieve("anything") == []

    @pytest.mark.asyncio
    async def test_retrieve_respects_namespace(self, embedding, index):
        await Indexer(embedding, index, namespace="a").index_chunks(make_chunks(["hello"]))

        assert len(await VectorRetriever(embedding, index, namespace="a").retrieve("hello")) == 1
        assert await VectorRetriever(embedding, index, namespace="b").retrieve("hello") == []

    @pytest.mark.asyncio
    async def test_missing_content_becomes_empty(self, embedding, index):
        await index.upsert([VectorRecord(id="bare", values=await embedding.embed_query("x"))])

        passages = await VectorRetriever(embedding, index).retrieve("x")

        assert passages[0].id == "bare"
        assert passages[0].content == ""

    @pytest.mark.asyncio
    async def test_invalid_k(self, embedding, index):
        with pytest.raises(ValueError):
            await VectorRetriever(embedding, index).retrieve("q", k=0)

    @pytest.mark.asyncio
    async def test_concurrent_retrievals(self, embedding, index, sample_texts):
        await Indexer(embedding, index).index_chunks(make_chunks(list(sample_texts.values())))
        retriever = VectorRetriever(embedding, index)

        results = await asyncio.gather(*[retriever.retrieve(q, k=1) for q in ("Python", "Rust")])

        assert "Python" in results[0][0].content
        assert "Rust" in results[1][0].content


class TestChromaVectorIndex:
    """Tests for ChromaVectorIndex on a temporary persistent client."""

    @pytest.fixture
    def chroma_index(self, tmp_path):
        pytest.importorskip("chromadb")
        return ChromaVectorIndex("chunks", persist_directory=str(tmp_path))

    @pytest.mark.asyncio
    async def test_index_and_query(self, chroma_index, embedding, sample_texts):
        indexer = Indexer(embedding, chroma_index)
        await indexer.initialize()
        await indexer.index_chunks(make_chunks(list(sample_texts.values())))

        passages = await VectorRetriever(embedding, chroma_index).retrieve("Rust memory safety", k=1)

        assert "Rust" in passages[0].content

    @pytest.mark.asyncio
    async def test_namespaces_map_to_collections(self, chroma_index, embedding):
        await Indexer(embedding, chroma_index, namespace="team").index_chunks(make_chunks(["hello"]))

        stats = await chroma_index.stats()

        assert stats["namespaces"] == {"team": {"vector_count": 1}}
        assert await chroma_index.query(await embedding.embed_query("hello")) == []

    @pytest.mark.asyncio
    async def test_collection_lookup_runs_off_the_event_loop(self):
        loop_thread = threading.get_ident()
        lookups = []
        rows = {}

        def get_or_create_collection(name, metadata):
            lookups.append((name, threading.get_ident()))
            return SimpleNamespace(
                name=name,
                upsert=lambda ids, embeddings, metadatas: rows.update(zip(ids, metadatas)),
                count=lambda: len(rows),
                query=lambda query_embeddings, n_results, include: {
                    "ids": [list(rows)[:n_results]],
                    "metadatas": [list(rows.values())[:n_results]],
                    "distances": [[0.25] * min(n_results, len(rows))],
                },
            )

        index = ChromaVectorIndex("chunks")
        index._client = SimpleNamespace(get_or_create_collection=get_or_create_collection)

        await index.upsert([VectorRecord(id="a", values=[1.0], metadata={"content": "x"})], "team")
        matches = await index.query([1.0], top_k=3, namespace="team")

        assert lookups == [("chunks__team", lookups[0][1])]
        assert lookups[0][1] != loop_thread
        assert [(m.id, m.score) for m in matches] == [("a", 0.75)]
