"""
ragchat exceptions.
"""


class RAGError(Exception):
    """Base exception for ragchat errors."""

    def __init__(self, message: str, stage: str | None = None):
        self.message = message
        self.stage = stage
        super().__init__(self.message)


class ConfigurationError(RAGError, ValueError):
    """Raised when configuration or construction parameters are invalid."""

    def __init__(self, message: str):
        super().__init__(message, stage="configuration")


class IndexInitializationTimeout(RAGError, TimeoutError):
    """Raised when a newly created index does not become ready in time."""

    def __init__(self, index_name: str, waited: float):
        self.index_name = index_name
        self.waited = waited
        super().__init__(
            f"Index initialization timeout: '{index_name}' not ready after {waited:.1f}s",
            stage="indexing",
        )


class EmbeddingError(RAGError):
    """Raised when the embedding service returns no usable vector."""

    def __init__(self, message: str = "No embedding values returned"):
        super().__init__(message, stage="embedding")


class GenerationError(RAGError):
    """Raised when the generation backend returns no text."""

    def __init__(self, message: str = "Generation returned no content"):
        super().__init__(message, stage="generation")
