"""
LLM providers and the conversational generation service.
"""

from ragchat.providers.anthropic import AnthropicProvider
from ragchat.providers.base import Completion, GenerationService, LLMProvider
from ragchat.providers.generator import ConversationalGenerator
from ragchat.providers.openai import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "Completion",
    "ConversationalGenerator",
    "GenerationService",
    "LLMProvider",
    "OpenAIProvider",
]
