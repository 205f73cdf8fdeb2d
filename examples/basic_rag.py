"""
Basic RAG example: index a few documents and hold a short conversation.
"""

import asyncio

from ragchat.rag import Document, RAGPipeline
from ragchat.utils import RAGConfig, set_log_level


DOCUMENTS = [
    Document(
        id="python",
        content=(
            "Python is a high-level programming language created by Guido van Rossum. "
            "It was first released in 1991 and emphasizes code readability."
        ),
        metadata={"topic": "languages"},
    ),
    Document(
        id="asyncio",
        content=(
            "asyncio is the Python standard library for writing concurrent code "
            "with the async and await syntax. It runs coroutines on an event loop."
        ),
        metadata={"topic": "libraries"},
    ),
]


async def main():
    set_log_level("INFO")

    # Fake embeddings and an in-memory index; answers come from OpenAI
    config = RAGConfig.from_env(
        embedding_provider="fake",
        vector_store="memory",
        llm_provider="openai",
        chunk_size=200,
        chunk_overlap=40,
    )
    pipeline = RAGPipeline.from_config(config)

    await pipeline.initialize()
    chunk_ids = await pipeline.add_documents(DOCUMENTS)
    print(f"Indexed {len(chunk_ids)} chunks")

    result = await pipeline.ask("Who created Python?", conversation_id="demo")
    print(f"Answer: {result.answer}")
    for i, source in enumerate(result.sources, 1):
        print(f"  [Source {i}] {source.id} (score={source.score:.3f})")

    # Follow-up in the same conversation
    result = await pipeline.ask("When was it first released?", conversation_id="demo")
    print(f"Answer: {result.answer}")

    history = await pipeline.get_history("demo")
    print(f"Conversation has {len(history)} turns")


if __name__ == "__main__":
    asyncio.run(main())
