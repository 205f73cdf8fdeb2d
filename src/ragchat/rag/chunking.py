"""Document normalization and chunking."""

import re
from typing import Optional

from ragchat.exceptions import ConfigurationError

from .base import BaseChunker
from .document import Chunk, Document

_WHITESPACE = re.compile(r"\s+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs, trim, and drop control characters."""
    cleaned = _WHITESPACE.sub(" ", text).strip()
    return _CONTROL_CHARS.sub("", cleaned)


class BoundaryChunker(BaseChunker):
    """Split documents into overlapping chunks that end at natural boundaries.

    Each window of ``chunk_size`` characters is shortened to end right
    after the last sentence break (``". "`` or a newline) found in its
    second half, or failing that before the last space in its second
    half. A window with neither is cut hard. Consecutive windows share
    ``overlap`` characters.
    """

    SENTENCE_BREAKS = (". ", "\n")

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
    ):
        """Initialize the chunker.

        Args:
            chunk_size: Maximum characters per chunk
            overlap: Characters shared by consecutive chunks

        Raises:
            ConfigurationError: If chunk_size is not positive or overlap is
                not in ``[0, chunk_size)``
        """
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
            )

        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, document: Document) -> list[Chunk]:
        """Split a document into chunks.

        The content is normalized first. ``total_chunks`` is written into
        every chunk's metadata once the whole document has been split.
        """
        text = normalize_text(document.content)
        length = len(text)
        chunks: list[Chunk] = []

        start = 0
        while start < length:
            end = min(start + self.chunk_size, length)
            window = text[start:end]

            if end < length:
                window = self._snap_to_boundary(window)

            content = window.strip()
            if content:
                chunk_index = len(chunks)
                chunks.append(Chunk(
                    id=f"{document.id}_chunk_{chunk_index}",
                    document_id=document.id,
                    content=content,
                    chunk_index=chunk_index,
                    metadata={
                        **document.metadata,
                        "original_document_id": document.id,
                        "chunk_index": chunk_index,
                    },
                    start_index=start,
                    end_index=start + len(window),
                ))

            if end >= length:
                break

            start += len(window) - self.overlap

        for chunk in chunks:
            chunk.metadata["total_chunks"] = len(chunks)

        return chunks

    def _snap_to_boundary(self, window: str) -> str:
        """Shorten a full window to its last sentence or word boundary.

        A snapped window must stay longer than the overlap so the cursor
        always advances; otherwise the hard cut is kept.
        """
        midpoint = self.chunk_size / 2

        sentence_end = max(window.rfind(sep) for sep in self.SENTENCE_BREAKS)
        if sentence_end >= midpoint and sentence_end + 1 > self.overlap:
            return window[: sentence_end + 1]

        last_space = window.rfind(" ")
        if last_space >= midpoint and last_space > self.overlap:
            return window[:last_space]

        return window


class DocumentProcessor:
    """Normalize documents and hand them to a chunker.

    Example:
        ```python
        processor = DocumentProcessor(BoundaryChunker(chunk_size=500, overlap=100))
        chunks = processor.process_and_chunk(documents)
        ```
    """

    def __init__(self, chunker: Optional[BaseChunker] = None):
        self.chunker = chunker or BoundaryChunker()

    def process_document(self, document: Document) -> Document:
        """Return a copy of the document with normalized content."""
        return document.model_copy(update={"content": normalize_text(document.content)})

    def process_documents(self, documents: list[Document]) -> list[Document]:
        """Normalize several documents."""
        return [self.process_document(doc) for doc in documents]

    def chunk_documents(self, documents: list[Document]) -> list[Chunk]:
        """Chunk several documents, flattening the result in order."""
        return self.chunker.chunk_documents(documents)

    def process_and_chunk(self, documents: list[Document]) -> list[Chunk]:
        """Normalize and chunk documents in one step."""
        return self.chunk_documents(self.process_documents(documents))
