"""
Anthropic Messages API backend.
"""

from typing import Any, Sequence

from ragchat.core.message import Message, split_system
from ragchat.providers.base import Completion, LLMProvider


class AnthropicProvider(LLMProvider):
    """
    Answers through ``messages.create`` of the Anthropic SDK.

    The Messages API takes no system role inside ``messages``, so every
    system turn (the retrieved context included) is joined into the
    top-level ``system`` parameter.
    """

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError(
                    "anthropic package not installed. "
                    "Install with: pip install 'ragchat[anthropic]'"
                )
            self._client = AsyncAnthropic(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str = "claude-3-5-haiku-latest",
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion:
        system, dialogue = split_system(messages)

        request: dict[str, Any] = {
            "model": model,
            "messages": [m.as_dict() for m in dialogue],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system:
            request["system"] = system

        response = await self._get_client().messages.create(**request)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return Completion(
            text=text,
            finish_reason=response.stop_reason,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
