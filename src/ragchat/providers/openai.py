"""
OpenAI chat completions backend.
"""

from typing import Sequence

from ragchat.core.message import Message
from ragchat.providers.base import Completion, LLMProvider


class OpenAIProvider(LLMProvider):
    """
    Answers through ``chat.completions`` of the OpenAI SDK.

    ``base_url`` points the client at any OpenAI-compatible server. Without
    an ``api_key`` the SDK reads OPENAI_API_KEY.
    """

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "openai package not installed. "
                    "Install with: pip install 'ragchat[openai]'"
                )
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> Completion:
        response = await self._get_client().chat.completions.create(
            model=model,
            messages=[m.as_dict() for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        choice = response.choices[0]
        usage = response.usage
        return Completion(
            text=choice.message.content or "",
            finish_reason=choice.finish_reason,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )
