"""LLM Provider implementation using Anthropic Claude API."""

import os
from collections.abc import AsyncIterator
from typing import Any, Protocol

import anthropic


class ILLMProvider(Protocol):
    """Abstraction for LLM access."""

    async def complete(
        self,
        messages: list[dict],  # [{"role": "user", "content": "..."}]
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> str:
        """Generate completion."""
        ...

    def stream(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> AsyncIterator[str]:
        """Generate completion as a stream of text chunks."""
        ...


class LLMProvider:
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str | None = None, model: str = "claude-3-5-sonnet-20241022"):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    def _request(
        self,
        messages: list[dict],
        system: str | None,
        max_tokens: int,
        model: str | None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": model or self._model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if system:
            request["system"] = system
        return request

    async def complete(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> str:
        """Generate completion using Claude API."""
        try:
            response = await self._client.messages.create(
                **self._request(messages, system, max_tokens, model)
            )
            return response.content[0].text

        except Exception as e:
            # Re-raise for handling by caller
            raise RuntimeError(f"LLM API error: {e}") from e

    async def stream(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> AsyncIterator[str]:
        """Stream completion text chunks as Claude produces them."""
        try:
            async with self._client.messages.stream(
                **self._request(messages, system, max_tokens, model)
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text

        except Exception as e:
            raise RuntimeError(f"LLM API error: {e}") from e
