"""
Configuration utilities.

Loaders report invalid settings as ``ConfigurationError``. Constructing a
model directly raises pydantic's ``ValidationError``, which is also a
``ValueError``.
"""

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml

from pydantic import BaseModel, ValidationError, model_validator

from ragchat.exceptions import ConfigurationError


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "settings") -> "Config":
        """Validate raw settings, raising ConfigurationError on bad values."""
        try:
            return cls(**data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid {source}: {problems}") from e

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls.from_dict(data, source=str(path))
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


class RAGConfig(Config):
    """Configuration for a RAG pipeline."""

    # Vector store settings
    vector_store: Literal["memory", "pinecone", "chroma"] = "memory"
    pinecone_api_key: str | None = None
    index_name: str = "ragchat"
    namespace: str = ""
    cloud: str = "aws"
    region: str = "us-east-1"
    chroma_path: str | None = None
    index_poll_interval: float = 1.0
    index_max_wait: float = 60.0
    upsert_batch_size: int = 100

    # Embedding settings
    embedding_provider: Literal["fake", "openai", "pinecone"] = "fake"
    embedding_model: str | None = None
    embedding_api_key: str | None = None

    # Generation settings
    llm_provider: Literal["openai", "anthropic"] = "openai"
    llm_api_key: str | None = None
    llm_base_url: str | None = None
    llm_model: str | None = None
    temperature: float = 0.7
    max_tokens: int = 1024

    # Chunking and retrieval
    chunk_size: int = 1000
    chunk_overlap: int = 200
    top_k: int = 5
    max_context_chars: int | None = 12000

    # Conversation history
    conversation_store: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    max_history_turns: int | None = 100
    history_ttl_seconds: float | None = None

    @model_validator(mode="after")
    def _check_chunking(self) -> "RAGConfig":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        if self.top_k < 1:
            raise ValueError("top_k must be at least 1")
        return self

    @classmethod
    def from_env(cls, prefix: str = "RAGCHAT_", **overrides: Any) -> "RAGConfig":
        """
        Build configuration from environment variables.

        Every field can be set as ``<prefix><FIELD_NAME>``. The Pinecone key
        also falls back to PINECONE_API_KEY; the OpenAI and Anthropic SDKs
        read OPENAI_API_KEY and ANTHROPIC_API_KEY themselves when no key is
        configured.
        """
        data: dict[str, Any] = {}
        for name in cls.model_fields:
            value = os.environ.get(f"{prefix}{name.upper()}")
            if value is not None:
                data[name] = value

        if "pinecone_api_key" not in data and os.environ.get("PINECONE_API_KEY"):
            data["pinecone_api_key"] = os.environ["PINECONE_API_KEY"]

        data.update(overrides)
        return cls.from_dict(data, source="environment")


def load_config(path: str | Path = "ragchat.yaml") -> RAGConfig:
    """
    Load RAG configuration from file.

    Args:
        path: Path to config file

    Returns:
        RAGConfig instance
    """
    path = Path(path)

    if not path.exists():
        return RAGConfig()

    return RAGConfig.from_file(path)
